# storefront/schemas/order.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

from storefront.schemas.product import ProductRead


class ShippingAddress(SQLModel):
    model_config = ConfigDict(extra="forbid")

    street: str
    city: str
    state: str
    postal_code: str
    country: str

    @field_validator("street", "city", "state", "postal_code", "country")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for placing an order from the current cart.

    User provides:
      - payment_method_id (provider payment method reference)
      - shipping_address

    Backend derives:
      - user_id from token
      - lines and total_price from the cart at current catalog prices
      - payment_info from the provider
    """

    model_config = ConfigDict(extra="forbid")

    payment_method_id: str
    shipping_address: ShippingAddress

    @field_validator("payment_method_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class PaymentInfo(SQLModel):
    payment_id: str
    status: str
    method: str


class OrderLineRead(SQLModel):
    """
    Snapshot line. price is the line total at purchase time.
    """

    product_id: uuid.UUID
    product: ProductRead | None = None
    quantity: int
    price: float
    size: str | None
    color: str | None


class OrderRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    lines: list[OrderLineRead]
    total_price: float
    payment_info: PaymentInfo
    shipping_address: ShippingAddress
    created_at: datetime


class OrderCancelRead(SQLModel):
    id: uuid.UUID
    refunded: bool
    message: str = "Order cancelled successfully"
