# storefront/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _strip_not_empty(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin).

    Media is passed as already-hosted URLs.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=255)
    description: str
    category: str = Field(max_length=100)
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    images: list[str] = []
    videos: list[str] = []

    @field_validator("title", "description", "category")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_not_empty(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload (admin). Omitted fields are left untouched.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    price: float | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    images: list[str] | None = None
    videos: list[str] | None = None

    @field_validator("title", "description", "category")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_not_empty(v)


class ProductRead(SQLModel):
    """
    Product as returned to clients, and as embedded in cart/order lines.
    """

    id: uuid.UUID
    title: str
    description: str
    category: str
    price: float
    stock: int
    images: list[str]
    videos: list[str]
    sales_count: int
    created_at: datetime


class ReviewCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    comment: str | None = None
    rating: int = Field(ge=1, le=5)

    @field_validator("comment")
    @classmethod
    def normalize_comment(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class ReviewRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    comment: str | None
    rating: int
    created_at: datetime


class ProductDetailRead(ProductRead):
    """
    Single-product view including its reviews.
    """

    reviews: list[ReviewRead] = []
