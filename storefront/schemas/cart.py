# storefront/schemas/cart.py
import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.product import ProductRead


def normalize_color(v: Any) -> Any:
    """
    Some clients send color as a list (e.g. ["red"]).
    The first element is the canonical value; an empty list is rejected.
    """
    if isinstance(v, (list, tuple)):
        if not v:
            raise ValueError("color cannot be empty")
        return v[0]
    return v


class CartLineBase(SQLModel):
    """
    Fields shared by add and update payloads.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(gt=0)
    size: str
    color: str

    @field_validator("color", mode="before")
    @classmethod
    def color_from_list(cls, v: Any) -> Any:
        return normalize_color(v)

    @field_validator("size", "color")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class CartLineCreate(CartLineBase):
    """
    Payload for adding a product to the cart (or replacing the quantity
    of an existing line with the same product/size/color).
    """

    product_id: uuid.UUID


class CartLineUpdate(CartLineBase):
    """
    Payload for updating the quantity of an existing line.
    """

    pass


class CartLineRead(SQLModel):
    """
    Read model for a single cart line with the product resolved.
    product is None when the product has been removed from the catalog.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    product: ProductRead | None = None
    quantity: int
    size: str
    color: str
    line_total: float


class CartRead(SQLModel):
    """
    Full cart response with totals.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    lines: list[CartLineRead]
    total_quantity: int
    total_price: float
    created_at: datetime
    updated_at: datetime
