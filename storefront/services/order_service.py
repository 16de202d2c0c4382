# storefront/services/order_service.py
import hashlib
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.auth import Identity
from storefront.core.config import get_settings
from storefront.core.errors import (
    EmptyCartError,
    NotFoundError,
    PaymentFailedError,
    ProviderError,
    ServerError,
)
from storefront.core.payments import (
    PaymentDeclined,
    PaymentGateway,
    PaymentProviderError,
    to_minor_units,
)
from storefront.models.cart import Cart, CartLine
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.order import (
    OrderCancelRead,
    OrderCreate,
    OrderLineRead,
    OrderRead,
    PaymentInfo,
    ShippingAddress,
)
from storefront.schemas.product import ProductRead

logger = logging.getLogger(__name__)


def snapshot_lines(
    lines: list[CartLine],
    products: dict[uuid.UUID, Product],
) -> tuple[list[OrderItem], float]:
    """
    Freeze cart lines into order items priced from the catalog right now.

    Returns (items, total_price). Items are not yet bound to an order.
    """
    items: list[OrderItem] = []
    total = 0.0

    for position, line in enumerate(lines):
        product = products.get(line.product_id)
        if product is None:
            raise NotFoundError(f"Product {line.product_id} is no longer available")

        price = product.price * line.quantity
        total += price
        items.append(
            OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                price=price,
                size=line.size,
                color=line.color,
                position=position,
            )
        )

    return items, total


def idempotency_key(cart: Cart, items: list[OrderItem], payment_method_id: str) -> str:
    """
    Same cart, contents and payment method => same key, so a retry after a
    network failure cannot charge twice. A declined charge bumps
    cart.payment_attempt, so paying again (same or another card) gets a new
    key instead of the stored decline. A new cart always gets a new key.
    """
    parts = sorted(
        f"{it.product_id}:{it.size}:{it.color}:{it.quantity}:{it.price:.2f}"
        for it in items
    )
    raw = (
        f"{cart.user_id}|{cart.id}|{cart.payment_attempt}|{payment_method_id}|"
        + "|".join(parts)
    )
    return "order-" + hashlib.sha256(raw.encode()).hexdigest()


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Turn the user's cart into an immutable order
      - Charge the payment provider exactly once per checkout attempt
      - Delete the cart only together with a persisted order
      - Cancel orders (refund + delete)
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # -------- Placing orders --------

    def place_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
        gateway: PaymentGateway,
    ) -> OrderRead:
        """
        Convert the current user's cart into an Order.

        Steps:
          1. Load cart; EmptyCart if absent or without lines.
          2. Price every line from the current catalog.
          3. Charge the provider; on failure nothing is written.
          4. Insert Order + OrderItems and delete the cart in one commit.
        """
        settings = get_settings()

        # 1) Load cart
        cart = self.cart_repo.get_for_user(session, user_id)
        lines = self.cart_repo.list_lines(session, cart.id) if cart else []
        if not cart or not lines:
            raise EmptyCartError()

        # 2) Snapshot at current prices
        products = self.product_repo.get_many(session, (l.product_id for l in lines))
        items, total_price = snapshot_lines(lines, products)

        # 3) Charge
        amount = to_minor_units(total_price)
        try:
            payment = gateway.charge(
                amount=amount,
                currency=settings.PAYMENT_CURRENCY,
                payment_method_id=payload.payment_method_id,
                idempotency_key=idempotency_key(cart, items, payload.payment_method_id),
            )
        except PaymentDeclined as e:
            logger.info("Payment declined for user %s: %s", user_id, e)
            self.cart_repo.bump_payment_attempt(session, cart)
            raise PaymentFailedError(f"Payment failed: {e}")
        except PaymentProviderError as e:
            logger.warning("Payment provider error for user %s: %s", user_id, e)
            raise PaymentFailedError(f"Payment failed: {e}")

        logger.info(
            "Charged %s %s for user %s (payment %s)",
            amount, settings.PAYMENT_CURRENCY, user_id, payment.id,
        )

        # 4) Persist order and drop the cart atomically
        address = payload.shipping_address
        order = Order(
            user_id=user_id,
            total_price=total_price,
            payment_id=payment.id,
            payment_status=payment.status,
            payment_method=payment.method,
            shipping_street=address.street,
            shipping_city=address.city,
            shipping_state=address.state,
            shipping_postal_code=address.postal_code,
            shipping_country=address.country,
        )
        try:
            order = self.order_repo.create_order(session, order)
            for item in items:
                item.order_id = order.id
            self.order_repo.create_items(session, items)
            self.cart_repo.delete(session, cart, commit=False)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            # Charged but not recorded: needs reconciliation against the provider.
            logger.exception(
                "Order persistence failed after charge; payment %s for user %s is unrecorded",
                payment.id, user_id,
            )
            raise ServerError("Order could not be saved")

        session.refresh(order)
        logger.info("Order %s placed for user %s", order.id, user_id)
        return self._build_order_dto(order, items, products)

    # -------- Reading orders --------

    def list_orders(self, session: Session, user_id: uuid.UUID) -> list[OrderRead]:
        """
        All orders of the user, newest first, products resolved.
        """
        orders = self.order_repo.list_for_user(session, user_id)
        items_by_order = {
            o.id: self.order_repo.list_items_for_order(session, o.id) for o in orders
        }
        products = self.product_repo.get_many(
            session,
            (it.product_id for items in items_by_order.values() for it in items),
        )
        return [
            self._build_order_dto(o, items_by_order[o.id], products) for o in orders
        ]

    def _get_visible_order(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
    ) -> Order:
        """
        Orders are only visible to their owner (and admins).
        Someone else's order looks exactly like a missing one.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or (order.user_id != identity.user_id and not identity.is_admin):
            raise NotFoundError("Order not found")
        return order

    def get_order(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
    ) -> OrderRead:
        order = self._get_visible_order(session, identity, order_id)
        items = self.order_repo.list_items_for_order(session, order.id)
        products = self.product_repo.get_many(session, (it.product_id for it in items))
        return self._build_order_dto(order, items, products)

    # -------- Cancelling --------

    def cancel_order(
        self,
        session: Session,
        identity: Identity,
        order_id: uuid.UUID,
        gateway: PaymentGateway,
    ) -> OrderCancelRead:
        """
        Refund (when a payment is recorded) and delete the order.

        A failed refund raises ProviderError and leaves the order in place.
        Stock and sales counts are not touched.
        """
        order = self._get_visible_order(session, identity, order_id)

        refunded = False
        if order.payment_id:
            try:
                gateway.refund(order.payment_id)
            except PaymentProviderError as e:
                raise ProviderError(f"Refund failed: {e}")
            refunded = True
            logger.info("Refunded payment %s for order %s", order.payment_id, order.id)

        self.order_repo.delete(session, order)
        logger.info("Order %s cancelled", order_id)
        return OrderCancelRead(id=order_id, refunded=refunded)

    # -------- Helper DTO builder --------

    def _build_order_dto(
        self,
        order: Order,
        items: list[OrderItem],
        products: dict[uuid.UUID, Product],
    ) -> OrderRead:
        line_dtos: list[OrderLineRead] = []
        for it in items:
            product = products.get(it.product_id)
            line_dtos.append(
                OrderLineRead(
                    product_id=it.product_id,
                    product=ProductRead.model_validate(product) if product else None,
                    quantity=it.quantity,
                    price=it.price,
                    size=it.size,
                    color=it.color,
                )
            )

        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            lines=line_dtos,
            total_price=order.total_price,
            payment_info=PaymentInfo(
                payment_id=order.payment_id,
                status=order.payment_status,
                method=order.payment_method,
            ),
            shipping_address=ShippingAddress(
                street=order.shipping_street,
                city=order.shipping_city,
                state=order.shipping_state,
                postal_code=order.shipping_postal_code,
                country=order.shipping_country,
            ),
            created_at=order.created_at,
        )
