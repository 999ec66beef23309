from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import CurrentUser
from ..deps import ensure_owner_or_admin, get_current_user, get_db, get_events
from ..errors import NotFoundError
from ..events import EventBus
from ..models import Order
from ..services import orders as order_service

router = APIRouter(prefix="/orders", tags=["orders"])


def _owned_order(db: Session, order_id: int, current: CurrentUser) -> Order:
    order = order_service.get_order_by_id(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    ensure_owner_or_admin(current, order.user_id)
    return order


@router.get("", response_model=List[schemas.OrderRead])
def list_orders(db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    return order_service.get_all_orders(db, user_id=None if current.is_admin else current.id)


@router.get("/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    return _owned_order(db, order_id, current)


@router.post("", response_model=schemas.OrderCreated, status_code=201)
def create_order(
    order: schemas.OrderCreate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_events),
    current: CurrentUser = Depends(get_current_user),
):
    order_id = order_service.create_order(db, current.id, order, events=events)
    return schemas.OrderCreated(order_id=order_id)


@router.put("/{order_id}", response_model=schemas.MessageResponse)
def update_order(
    order_id: int,
    patch: schemas.OrderUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_events),
    current: CurrentUser = Depends(get_current_user),
):
    _owned_order(db, order_id, current)
    order_service.update_order(db, order_id, patch, events=events)
    return {"message": "Order updated successfully"}


@router.delete("/{order_id}", response_model=schemas.MessageResponse)
def delete_order(order_id: int, db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    _owned_order(db, order_id, current)
    order_service.delete_order(db, order_id)
    return {"message": "Order deleted successfully"}
