# storefront/services/checkout_service.py
import logging
import uuid

from sqlmodel import Session

from storefront.core.config import get_settings
from storefront.core.errors import EmptyCartError, NotFoundError, ProviderError
from storefront.core.payments import (
    HostedLineItem,
    PaymentGateway,
    PaymentProviderError,
    to_minor_units,
)
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.checkout import CheckoutSessionRead, CheckoutStatusRead

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Provider-hosted checkout: the cart is shown on the provider's page
    and the client is redirected there. Nothing is written locally.
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    def create_session(
        self,
        session: Session,
        user_id: uuid.UUID,
        gateway: PaymentGateway,
    ) -> CheckoutSessionRead:
        settings = get_settings()

        cart = self.cart_repo.get_for_user(session, user_id)
        lines = self.cart_repo.list_lines(session, cart.id) if cart else []
        if not cart or not lines:
            raise EmptyCartError()

        products = self.product_repo.get_many(session, (l.product_id for l in lines))

        line_items: list[HostedLineItem] = []
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                raise NotFoundError(f"Product {line.product_id} is no longer available")
            line_items.append(
                HostedLineItem(
                    name=product.title,
                    description=product.description,
                    images=list(product.images or []),
                    unit_amount=to_minor_units(product.price),
                    quantity=line.quantity,
                )
            )

        try:
            hosted = gateway.create_hosted_session(
                line_items,
                currency=settings.PAYMENT_CURRENCY,
                success_url=settings.CHECKOUT_SUCCESS_URL,
                cancel_url=settings.CHECKOUT_CANCEL_URL,
            )
        except PaymentProviderError as e:
            raise ProviderError(f"Could not create checkout session: {e}")

        logger.info("Checkout session %s created for user %s", hosted.id, user_id)
        return CheckoutSessionRead(id=hosted.id, url=hosted.url)

    def session_status(
        self,
        session_id: str,
        gateway: PaymentGateway,
    ) -> CheckoutStatusRead:
        try:
            paid = gateway.get_session_status(session_id)
        except PaymentProviderError as e:
            raise ProviderError(f"Error checking payment status: {e}")
        return CheckoutStatusRead(status="succeeded" if paid else "failed")
