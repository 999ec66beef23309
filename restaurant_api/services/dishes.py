import logging
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..db import transaction
from ..errors import ConflictError, NotFoundError, StorageError, ValidationError
from ..storage import remove_image
from ..utils import is_valid_price, round_amount, sanitize_text, to_decimal

logger = logging.getLogger(__name__)


def get_all_dishes(db: Session) -> List[models.Dish]:
    return db.query(models.Dish).order_by(models.Dish.id).all()


def get_dish_by_id(db: Session, dish_id: int) -> Optional[models.Dish]:
    return db.get(models.Dish, dish_id)


def clean_price(value: Any) -> Decimal:
    if not is_valid_price(value):
        raise ValidationError("Invalid price format")
    return round_amount(to_decimal(value))


def create_dish(db: Session, dish: schemas.DishCreate) -> models.Dish:
    name = sanitize_text(dish.name)
    ingredients = sanitize_text(dish.ingredients)
    # a price of 0 is allowed, only its absence is an error
    if not name or dish.price is None or not ingredients:
        raise ValidationError("Name, Price and Ingredients are required")

    db_dish = models.Dish(
        name=name,
        price=clean_price(dish.price),
        ingredients=ingredients,
        image_path=dish.image_path,
    )
    with transaction(db):
        db.add(db_dish)
    db.refresh(db_dish)
    logger.info("Created dish %s (%s)", db_dish.id, db_dish.name)
    return db_dish


def _discard_replaced_image(path: str) -> None:
    # Best effort: the metadata update goes ahead whatever happens here
    try:
        if remove_image(path):
            logger.info("Deleted old image file %s", path)
    except OSError:
        logger.exception("Failed to delete old image file %s", path)


def update_dish(db: Session, dish_id: int, patch: schemas.DishUpdate) -> models.Dish:
    fields = patch.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise ValidationError("No fields provided for update")
    if "price" in fields:
        fields["price"] = clean_price(fields["price"])
    for name in ("name", "ingredients"):
        if name in fields:
            fields[name] = sanitize_text(fields[name])
            if not fields[name]:
                raise ValidationError(f"{name.capitalize()} cannot be empty")

    dish = db.get(models.Dish, dish_id)
    if not dish:
        raise NotFoundError("Dish not found")

    new_image = fields.get("image_path")
    if new_image and dish.image_path and dish.image_path != new_image:
        _discard_replaced_image(dish.image_path)

    with transaction(db):
        for name, value in fields.items():
            setattr(dish, name, value)
    db.refresh(dish)
    logger.info("Updated dish %s (%s)", dish_id, ", ".join(sorted(fields)))
    return dish


def delete_dish(db: Session, dish_id: int) -> None:
    """Delete a dish row and its image as one unit.

    Dishes still referenced by an order line are refused. If the image exists
    but cannot be removed, the row delete is rolled back rather than leaving a
    file without a dish.
    """
    with transaction(db):
        referenced = (
            db.query(func.count())
            .select_from(models.OrderItem)
            .filter(models.OrderItem.dish_id == dish_id)
            .scalar()
        )
        if referenced:
            raise ConflictError("Cannot delete dish that is part of existing orders")

        # row lock serializes against concurrent deletes and order inserts
        dish = (
            db.query(models.Dish)
            .filter(models.Dish.id == dish_id)
            .with_for_update()
            .one_or_none()
        )
        if dish is None:
            raise NotFoundError("Dish not found")

        image_path = dish.image_path
        db.delete(dish)
        db.flush()

        if image_path:
            try:
                removed = remove_image(image_path)
            except OSError as e:
                logger.error("Failed to delete image file %s, rolling back deletion of dish %s: %s", image_path, dish_id, e)
                raise StorageError("Failed to delete associated image file") from e
            if not removed:
                logger.info("Image file %s not found, proceeding with deletion of dish %s", image_path, dish_id)
    logger.info("Deleted dish %s", dish_id)
