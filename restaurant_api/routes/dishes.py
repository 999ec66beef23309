import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from .. import schemas
from ..auth import CurrentUser
from ..deps import get_db, get_image_store, require_roles
from ..errors import NotFoundError
from ..models import Role
from ..services import dishes as dish_service
from ..storage import ImageStore, remove_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dishes", tags=["dishes"])

admin_only = require_roles(Role.ADMIN.value)


def _present(**fields) -> dict:
    # blank form fields count as not sent
    return {k: v for k, v in fields.items() if v is not None and v != ""}


def _store_upload(images: ImageStore, image: Optional[UploadFile]) -> Optional[str]:
    if image is None or not image.filename:
        return None
    return images.save(image.filename, image.file, image.content_type)


def _discard_upload(path: Optional[str]) -> None:
    if not path:
        return
    try:
        remove_image(path)
    except OSError:
        logger.exception("Failed to clean up uploaded image %s", path)


@router.get("", response_model=List[schemas.DishRead])
def list_dishes(db: Session = Depends(get_db)):
    return dish_service.get_all_dishes(db)


@router.get("/{dish_id}", response_model=schemas.DishRead)
def get_dish(dish_id: int, db: Session = Depends(get_db)):
    dish = dish_service.get_dish_by_id(db, dish_id)
    if not dish:
        raise NotFoundError("Dish not found")
    return dish


@router.post("", response_model=schemas.DishRead, status_code=201)
def create_dish(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    ingredients: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
    _: CurrentUser = Depends(admin_only),
):
    image_path = _store_upload(images, image)
    try:
        return dish_service.create_dish(
            db, schemas.DishCreate(**_present(name=name, price=price, ingredients=ingredients, image_path=image_path))
        )
    except Exception:
        _discard_upload(image_path)
        raise


@router.put("/{dish_id}", response_model=schemas.DishRead)
def update_dish(
    dish_id: int,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    ingredients: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
    _: CurrentUser = Depends(admin_only),
):
    image_path = _store_upload(images, image)
    try:
        return dish_service.update_dish(
            db, dish_id, schemas.DishUpdate(**_present(name=name, price=price, ingredients=ingredients, image_path=image_path))
        )
    except Exception:
        _discard_upload(image_path)
        raise


@router.delete("/{dish_id}", response_model=schemas.MessageResponse)
def delete_dish(dish_id: int, db: Session = Depends(get_db), _: CurrentUser = Depends(admin_only)):
    dish_service.delete_dish(db, dish_id)
    return {"message": "Dish deleted successfully"}
