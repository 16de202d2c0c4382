# storefront/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Placed order. Written once from a cart snapshot and never updated;
    cancellation deletes it.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(index=True)

    total_price: float = Field(
        description="Sum of line prices at purchase time",
    )

    # Payment info returned by the provider
    payment_id: str = Field(index=True)
    payment_status: str
    payment_method: str

    # Shipping address (embedded)
    shipping_street: str
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_country: str

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Snapshot line inside an order.

    price is the line total (unit price * quantity) at purchase time.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(index=True)

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    price: float = Field(
        description="Line total at time of order",
    )

    size: str | None = None
    color: str | None = None

    position: int = Field(default=0)
