from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from .models import OrderStatus


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# -------------------- Users --------------------

class UserCreate(ApiModel):
    username: Optional[str] = Field(default=None, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = None
    email: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    phone_number: Optional[str] = None


class UserUpdate(UserCreate):
    role: Optional[str] = None


class UserRead(ApiModel):
    id: int
    username: str
    last_name: Optional[str] = None
    email: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -------------------- Dishes --------------------

class DishCreate(ApiModel):
    name: Optional[str] = None
    # raw form value; parsed and range-checked by the dish service
    price: Any = None
    ingredients: Optional[str] = None
    image_path: Optional[str] = None


class DishUpdate(DishCreate):
    pass


class DishRead(ApiModel):
    id: int
    name: str
    price: Decimal
    ingredients: Optional[str] = None
    image_path: Optional[str] = None


# -------------------- Orders --------------------

class OrderItemIn(ApiModel):
    dish_id: int = Field(le=2**31 - 1)
    # validated by the order service so the error can name the dish
    quantity: Any = 1


class OrderCreate(ApiModel):
    items: Optional[List[OrderItemIn]] = None
    delivery_address: Optional[str] = Field(default=None, max_length=255)
    # null is accepted and stored as unpaid
    paid: Optional[bool] = None


class OrderUpdate(ApiModel):
    status: Optional[OrderStatus] = None
    paid: Optional[bool] = None


class OrderItemRead(ApiModel):
    dish_id: int
    quantity: int
    name: Optional[str] = None
    price: Optional[Decimal] = None


class OrderRead(ApiModel):
    id: int
    user_id: int
    delivery_address: Optional[str] = None
    ordered_at: Optional[datetime] = None
    processing_at: Optional[datetime] = None
    delivering_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    paid: bool
    status: str
    items: List[OrderItemRead] = []


class OrderCreated(ApiModel):
    message: str = "Order created"
    order_id: int


# -------------------- Auth / misc --------------------

class LoginRequest(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(ApiModel):
    message: str = "Login successful"
    user_id: int
    role: str


class MessageResponse(ApiModel):
    message: str


class DbHealth(ApiModel):
    status: str


class HealthResponse(ApiModel):
    status: str
    uptime: int
    db: DbHealth
    timestamp: datetime
