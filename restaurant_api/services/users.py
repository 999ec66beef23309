import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import CurrentUser, hash_password
from ..db import transaction
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..utils import is_valid_email, is_valid_phone_number, sanitize_text

logger = logging.getLogger(__name__)

ROLES = {r.value for r in models.Role}


def get_all_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.id).all()


def get_user_by_id(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def _email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.User.id).filter(models.User.email == email)
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    username = sanitize_text(user.username)
    email = (user.email or "").strip()
    if not username or not user.password or not email:
        raise ValidationError("Username, password, and email are required")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if not is_valid_phone_number(user.phone_number):
        raise ValidationError("Invalid phone number format")
    # explicit check so the caller gets an actionable message
    if _email_taken(db, email):
        raise ConflictError("Email already exists")

    # New registrations are always plain users, whatever the payload says
    db_user = models.User(
        username=username,
        last_name=sanitize_text(user.last_name),
        password_hash=hash_password(user.password),
        email=email,
        address=sanitize_text(user.address),
        phone_number=user.phone_number or None,
        role=models.Role.USER.value,
    )
    try:
        with transaction(db):
            db.add(db_user)
    except IntegrityError as e:
        # lost a race with a concurrent registration
        raise ConflictError("Email already exists") from e
    db.refresh(db_user)
    logger.info("Created user %s", db_user.id)
    return db_user


def update_user(db: Session, user_id: int, patch: schemas.UserUpdate, acting: Optional[CurrentUser] = None) -> models.User:
    fields = patch.model_dump(exclude_unset=True, exclude_none=True)

    role = fields.pop("role", None)
    if role is not None:
        if acting is None or not acting.is_admin:
            raise ForbiddenError("Access denied: Only admins can change roles")
        if acting.id == user_id:
            raise ForbiddenError("Access denied: You cannot change your own role")
        if role not in ROLES:
            raise ValidationError("Invalid role")
        fields["role"] = role

    if not fields:
        raise ValidationError("No fields provided for update")

    if "email" in fields:
        fields["email"] = fields["email"].strip()
        if not is_valid_email(fields["email"]):
            raise ValidationError("Invalid email format")
    if "phone_number" in fields and not is_valid_phone_number(fields["phone_number"]):
        raise ValidationError("Invalid phone number format")
    for name in ("username", "last_name", "address"):
        if name in fields:
            fields[name] = sanitize_text(fields[name])
    if "username" in fields and not fields["username"]:
        raise ValidationError("Username cannot be empty")
    if "password" in fields:
        if not fields["password"]:
            raise ValidationError("Password cannot be empty")
        fields["password_hash"] = hash_password(fields.pop("password"))

    user = db.get(models.User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if "email" in fields and _email_taken(db, fields["email"], exclude_id=user_id):
        raise ConflictError("Email already exists")

    try:
        with transaction(db):
            for name, value in fields.items():
                setattr(user, name, value)
    except IntegrityError as e:
        raise ConflictError("Email already exists") from e
    db.refresh(user)
    logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)))
    return user


def count_active_orders(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(models.Order.id))
        .filter(models.Order.user_id == user_id, models.Order.status != models.OrderStatus.COMPLETED.value)
        .scalar()
    )


def delete_user(db: Session, user_id: int) -> None:
    user = db.get(models.User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if count_active_orders(db, user_id) > 0:
        raise ConflictError("Cannot delete user with active orders. Please complete or delete active orders first.")
    # completed orders and refresh tokens go with the user
    with transaction(db):
        db.delete(user)
    logger.info("Deleted user %s", user_id)
