from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import CurrentUser
from ..deps import ensure_owner_or_admin, get_current_user, get_db, require_roles
from ..errors import NotFoundError
from ..models import Role
from ..services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[schemas.UserRead])
def list_users(db: Session = Depends(get_db), _: CurrentUser = Depends(require_roles(Role.ADMIN.value))):
    return user_service.get_all_users(db)


@router.post("", response_model=schemas.UserRead, status_code=201)
def create_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    return user_service.create_user(db, user)


@router.get("/{user_id}", response_model=schemas.UserRead)
def get_user(user_id: int, db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    ensure_owner_or_admin(current, user_id)
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.put("/{user_id}", response_model=schemas.UserRead)
def update_user(user_id: int, patch: schemas.UserUpdate, db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    ensure_owner_or_admin(current, user_id)
    return user_service.update_user(db, user_id, patch, acting=current)


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    ensure_owner_or_admin(current, user_id)
    user_service.delete_user(db, user_id)
    return {"message": "User deleted successfully"}
