import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship, validates

from .db import Base
from .enums import OrderStatus, Role


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    # answer to the security question, used by forgot-password
    answer = Column(String, nullable=False)
    role = Column(Integer, nullable=False, default=int(Role.SHOPPER))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    orders = relationship("Order", back_populates="buyer")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    slug = Column(String, nullable=False, unique=True, index=True)

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    # categories can be deleted without touching their products
    category_id = Column(String(32), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    shipping = Column(Boolean, nullable=False, default=False)
    photo_data = Column(LargeBinary, nullable=True)
    photo_content_type = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products")

    @validates("quantity")
    def non_negative_quantity(self, key, value):
        if value is not None and int(value) < 0:
            raise ValueError("quantity must be non-negative")
        return value


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    position = Column(Integer, nullable=False)

    product = relationship("Product")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    buyer_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    # opaque gateway result: success, message, params, errors
    payment = Column(JSON, nullable=False)
    status = Column(String, nullable=False, default=OrderStatus.NOT_PROCESS.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    buyer = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    products = association_proxy("items", "product", creator=lambda product: OrderItem(product=product))

    @validates("status")
    def known_status(self, key, value):
        if value not in OrderStatus.values():
            raise ValueError(f"Invalid status: {value!r}")
        return OrderStatus(value).value


@event.listens_for(Order, "before_insert")
@event.listens_for(Order, "before_update")
def products_not_empty(mapper, connection, target):
    if not target.items:
        raise ValueError("Products array must not be empty")
