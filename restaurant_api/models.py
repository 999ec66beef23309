import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    ORDERED = "ordered"
    PROCESSING = "processing"
    DELIVERING = "delivering"
    COMPLETED = "completed"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    address = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    # simple RBAC: 'user' or 'admin'
    role = Column(String(10), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")


class Dish(Base):
    __tablename__ = "dishes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    ingredients = Column(Text, nullable=True)
    image_path = Column(String(255), nullable=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    delivery_address = Column(String(255), nullable=True)
    ordered_at = Column(DateTime, nullable=True)
    processing_at = Column(DateTime, nullable=True)
    delivering_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    paid = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=OrderStatus.ORDERED.value, index=True)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.dish_id")


class OrderItem(Base):
    __tablename__ = "order_items"

    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    dish_id = Column(Integer, ForeignKey("dishes.id", ondelete="CASCADE"), primary_key=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="items")
    dish = relationship("Dish")

    # Read-time denormalization: current catalog values, not a price snapshot
    @property
    def name(self):
        return self.dish.name if self.dish is not None else None

    @property
    def price(self):
        return self.dish.price if self.dish is not None else None


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(512), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="refresh_tokens")
