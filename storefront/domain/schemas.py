# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignUpIn(BaseModel):
    """Schema for creating an account."""

    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255, description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password (8-128 characters)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")


class SignInIn(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserRead(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


IMAGE_URL_PATTERN = r"^https?://\S+$"


class ProfileOut(UserRead):
    image: str | None = None


class ProfileUpdateIn(BaseModel):
    """Schema for editing the profile; omitted fields keep their value."""

    name: str | None = Field(None, min_length=1, max_length=100)
    email: str | None = Field(None, pattern=EMAIL_PATTERN, max_length=255)
    image: str | None = Field(None, pattern=IMAGE_URL_PATTERN, max_length=500)


class ProfileImageIn(BaseModel):
    image: str = Field(..., pattern=IMAGE_URL_PATTERN, max_length=500, description="Image URL")


class AddressIn(BaseModel):
    """Schema for adding an address."""

    type: Literal["billing", "shipping"]
    line1: str = Field(..., min_length=1, max_length=255)
    line2: str | None = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    country: str = Field(..., min_length=1, max_length=120)
    postal_code: str = Field(..., min_length=1, max_length=20)
    is_default: bool = False


class AddressUpdateIn(BaseModel):
    type: Literal["billing", "shipping"] | None = None
    line1: str | None = Field(None, min_length=1, max_length=255)
    line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, min_length=1, max_length=120)
    state: str | None = Field(None, min_length=1, max_length=120)
    country: str | None = Field(None, min_length=1, max_length=120)
    postal_code: str | None = Field(None, min_length=1, max_length=20)
    is_default: bool | None = None


class AddressOut(BaseModel):
    id: int
    type: str
    line1: str
    line2: str | None = None
    city: str
    state: str
    country: str
    postal_code: str
    is_default: bool

    model_config = ConfigDict(from_attributes=True)


class AuthOut(BaseModel):
    user: UserRead
    cart_id: int | None = None


class ItemIn(BaseModel):
    """Schema for adding a variant to the cart."""

    variant_id: int = Field(..., gt=0, description="Product variant ID (must be > 0)")
    quantity: int = Field(1, gt=0, description="Quantity to add (must be > 0)")


class QuantityIn(BaseModel):
    quantity: int = Field(..., gt=0, description="New quantity; use DELETE to remove a line")


class CartItemOut(BaseModel):
    id: int
    variant_id: int
    product_id: int
    name: str
    size: str | None = None
    color: str | None = None
    quantity: int
    price: Decimal
    sale_price: Decimal | None = None
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    """Schema for the cart (response)."""

    cart_id: int | None
    items: List[CartItemOut]
    item_count: int
    subtotal: Decimal
    delivery_fee: Decimal
    total: Decimal


class VariantOut(BaseModel):
    id: int
    sku: str
    size: str | None = None
    color: str | None = None
    price: Decimal
    sale_price: Decimal | None = None
    effective_price: Decimal
    in_stock: int


class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    gender: str | None = None
    category: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    variants: List[VariantOut]


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    per_page: int


class CheckoutOut(BaseModel):
    session_id: str
    url: str | None
    total_amount: Decimal


class OrderItemOut(BaseModel):
    id: int
    variant_id: int
    quantity: int
    price_at_purchase: Decimal
    product_name: str | None = None
    size: str | None = None
    color: str | None = None


class OrderOut(BaseModel):
    """Schema for an order (response)."""

    id: int
    user_id: int | None
    status: str
    total_amount: Decimal
    payment_session_id: str
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class CheckoutSuccessOut(BaseModel):
    """What the return-from-payment page shows."""

    outcome: Literal["created", "already_processed"]
    message: str
    order: OrderOut
