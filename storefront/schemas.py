from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

# -------------------- Requests --------------------
# Fields are optional so controllers can report the first missing one in the
# storefront's own message format instead of a 422.


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    answer: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None
    answer: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")

    model_config = ConfigDict(populate_by_name=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class ProductFilters(BaseModel):
    checked: List[str] = Field(default_factory=list)
    radio: List[Decimal] = Field(default_factory=list)


class CartItem(BaseModel):
    """A product snapshot as held by the client cart; only id and price matter here."""
    id: str = Field(alias="_id")
    price: Decimal = Field(..., ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PaymentRequest(BaseModel):
    nonce: Optional[str] = None
    cart: List[CartItem] = Field(default_factory=list)


# -------------------- Responses --------------------


class UserRead(BaseModel):
    id: str = Field(serialization_alias="_id")
    name: str
    email: str
    phone: str
    address: str
    role: int

    model_config = ConfigDict(from_attributes=True)


class BuyerRead(BaseModel):
    id: str = Field(serialization_alias="_id")
    name: str

    model_config = ConfigDict(from_attributes=True)


class CategoryRead(BaseModel):
    id: str = Field(serialization_alias="_id")
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class ProductRead(BaseModel):
    """Product without its photo bytes; the photo has its own endpoint."""
    id: str = Field(serialization_alias="_id")
    name: str
    slug: str
    description: str
    price: Decimal
    category: Optional[CategoryRead] = None
    quantity: int
    shipping: bool
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: str = Field(serialization_alias="_id")
    products: List[ProductRead]
    payment: dict[str, Any]
    buyer: BuyerRead
    status: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("products", mode="before")
    def drop_deleted_products(cls, v):
        # products removed from the catalog leave an empty slot behind
        return [p for p in v if p is not None]
