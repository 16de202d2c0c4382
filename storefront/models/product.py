# storefront/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    Media URLs are stored as JSON lists; uploading the files themselves
    happens outside this service.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    title: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    description: str = Field(
        description="Long description shown on the product page",
    )

    category: str = Field(
        max_length=100,
        index=True,
    )

    price: float = Field(
        ge=0,
        description="Unit price in the store currency",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    videos: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    sales_count: int = Field(
        default=0,
        ge=0,
        index=True,
        description="Units sold; drives the best-selling list",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class ProductReview(SQLModel, table=True):
    """
    Customer review of a product (1-5 stars).
    """

    __tablename__ = "product_reviews"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    user_id: uuid.UUID = Field(index=True)

    comment: str | None = None

    rating: int = Field(ge=1, le=5)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
