# storefront/models/cart.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    One live cart per user.

    total_price is a cache of the sum of line totals and is rewritten
    on every mutation.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        unique=True,
        index=True,
    )

    total_price: float = Field(default=0.0)

    # Bumped after each declined charge so the next attempt gets a fresh
    # idempotency key at the provider.
    payment_attempt: int = Field(default=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CartLine(SQLModel, table=True):
    """
    A line inside a cart.
    A cart cannot hold 2 lines with the same (product, size, color).
    """

    __tablename__ = "cart_lines"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "size", "color", name="uq_cart_line_key"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
    )

    # No FK: a line may outlive its product; reads handle the missing product.
    product_id: uuid.UUID = Field(index=True)

    quantity: int = Field(
        gt=0,
        description="Must be >= 1",
    )

    size: str
    color: str

    line_total: float = Field(
        description="Current unit price * quantity",
    )

    # Insertion order within the cart
    position: int = Field(default=0)
