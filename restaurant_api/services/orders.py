"""Order placement and lifecycle.

Status only moves forward: ordered -> processing -> delivering -> completed.
Skipping ahead is allowed, going back is not. Each move stamps the timestamp
column of the state it lands in.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import insert
from sqlalchemy.orm import Query, Session, selectinload

from .. import models, schemas
from ..db import transaction
from ..errors import ConflictError, DishesNotFoundError, NotFoundError, ValidationError
from ..events import EventBus
from ..utils import is_valid_quantity, sanitize_text

logger = logging.getLogger(__name__)

Status = models.OrderStatus

ALLOWED_TRANSITIONS = {
    Status.ORDERED: {Status.PROCESSING, Status.DELIVERING, Status.COMPLETED},
    Status.PROCESSING: {Status.DELIVERING, Status.COMPLETED},
    Status.DELIVERING: {Status.COMPLETED},
    Status.COMPLETED: set(),
}

TIMESTAMP_COLUMNS = {
    Status.PROCESSING: "processing_at",
    Status.DELIVERING: "delivering_at",
    Status.COMPLETED: "completed_at",
}


def can_transition(current: Status, target: Status) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _with_items(query: Query) -> Query:
    return query.options(selectinload(models.Order.items).joinedload(models.OrderItem.dish))


def get_all_orders(db: Session, user_id: Optional[int] = None) -> List[models.Order]:
    query = _with_items(db.query(models.Order))
    if user_id is not None:
        query = query.filter(models.Order.user_id == user_id)
    return query.order_by(models.Order.id).all()


def get_order_by_id(db: Session, order_id: int) -> Optional[models.Order]:
    return _with_items(db.query(models.Order)).filter(models.Order.id == order_id).one_or_none()


def merge_items(items: Iterable[schemas.OrderItemIn]) -> Dict[int, int]:
    """Validate quantities and fold repeated dishes into one line, keeping first-seen order."""
    quantities: Dict[int, int] = {}
    for item in items:
        if not is_valid_quantity(item.quantity):
            raise ValidationError(f"Invalid quantity for dish {item.dish_id}")
        quantities[item.dish_id] = quantities.get(item.dish_id, 0) + int(item.quantity)
    return quantities


def create_order(db: Session, user_id: int, order: schemas.OrderCreate, events: Optional[EventBus] = None) -> int:
    if not user_id:
        raise ValidationError("User ID is required")
    if not order.items:
        raise ValidationError("Order must contain at least one item")
    quantities = merge_items(order.items)

    if db.get(models.User, user_id) is None:
        raise NotFoundError("User not found")
    found = {row[0] for row in db.query(models.Dish.id).filter(models.Dish.id.in_(quantities)).all()}
    missing = set(quantities) - found
    if missing:
        raise DishesNotFoundError(missing)

    delivery_address = sanitize_text(order.delivery_address)
    with transaction(db):
        db_order = models.Order(
            user_id=user_id,
            delivery_address=delivery_address,
            paid=bool(order.paid),
            status=Status.ORDERED.value,
            ordered_at=datetime.now(),
        )
        db.add(db_order)
        db.flush()
        order_id = db_order.id
        db.execute(
            insert(models.OrderItem),
            [{"order_id": order_id, "dish_id": dish_id, "quantity": qty} for dish_id, qty in quantities.items()],
        )
    logger.info("Order %s created for user %s with %d item(s)", order_id, user_id, len(quantities))

    if events is not None:
        events.emit_new_order({
            "orderId": order_id,
            "userId": user_id,
            "items": [{"dishId": dish_id, "quantity": qty} for dish_id, qty in quantities.items()],
            "deliveryAddress": delivery_address,
            "paid": bool(order.paid),
        })
    return order_id


def update_order(db: Session, order_id: int, patch: schemas.OrderUpdate, events: Optional[EventBus] = None) -> models.Order:
    fields = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise ValidationError("No fields provided for update")

    changed_status = None
    with transaction(db):
        db_order = (
            db.query(models.Order)
            .filter(models.Order.id == order_id)
            .with_for_update()
            .one_or_none()
        )
        if db_order is None:
            raise NotFoundError("Order not found")

        if "status" in fields:
            target = Status(fields["status"])
            current = Status(db_order.status)
            # re-sending the current status is a no-op, not a transition
            if target != current:
                if not can_transition(current, target):
                    raise ConflictError(f"Invalid status transition from {current.value} to {target.value}")
                db_order.status = target.value
                setattr(db_order, TIMESTAMP_COLUMNS[target], datetime.now())
                changed_status = target
        if "paid" in fields:
            db_order.paid = fields["paid"]

    if changed_status is not None:
        logger.info("Order %s moved to %s", order_id, changed_status.value)
        if events is not None:
            events.emit_order_status_update(order_id, changed_status.value)
    return db_order


def delete_order(db: Session, order_id: int) -> None:
    db_order = db.get(models.Order, order_id)
    if not db_order:
        raise NotFoundError("Order not found")
    with transaction(db):
        db.delete(db_order)
    logger.info("Deleted order %s", order_id)
