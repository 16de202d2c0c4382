# storefront/core/payments.py
"""
Payment provider boundary.

Services only talk to `PaymentGateway`. The Stripe implementation lives here
and is the only module that imports the Stripe SDK, so tests can swap in a
fake gateway through `get_payment_gateway`.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache

import stripe

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)

# PaymentIntent states that mean the charge did not go through.
FAILED_INTENT_STATUSES = {"requires_payment_method", "canceled"}


class PaymentDeclined(Exception):
    """The provider refused the charge (card declined, bad method, ...)."""


class PaymentProviderError(Exception):
    """The provider could not be reached or answered with an error."""


@dataclass(frozen=True)
class PaymentResult:
    id: str
    status: str
    method: str


@dataclass(frozen=True)
class HostedLineItem:
    """One line of a provider-hosted checkout page."""

    name: str
    unit_amount: int
    quantity: int
    description: str | None = None
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HostedSession:
    id: str
    url: str


class PaymentGateway(ABC):
    """
    Contract for the external payment service.

    Amounts are always integer minor units (cents).
    """

    @abstractmethod
    def charge(
        self,
        amount: int,
        currency: str,
        payment_method_id: str,
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        ...

    @abstractmethod
    def refund(self, payment_id: str) -> None:
        ...

    @abstractmethod
    def create_hosted_session(
        self,
        line_items: list[HostedLineItem],
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> HostedSession:
        ...

    @abstractmethod
    def get_session_status(self, session_id: str) -> bool:
        """Return True when the hosted session has been paid."""
        ...


class StripePaymentGateway(PaymentGateway):
    """
    PaymentGateway backed by the Stripe SDK.

    Every Stripe failure is translated into PaymentDeclined (card errors on
    charge) or PaymentProviderError (everything else).
    """

    def __init__(self, api_key: str):
        self.api_key = api_key

    def charge(
        self,
        amount: int,
        currency: str,
        payment_method_id: str,
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                payment_method=payment_method_id,
                confirm=True,
                automatic_payment_methods={
                    "enabled": True,
                    "allow_redirects": "never",
                },
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as e:
            logger.warning("Stripe declined charge: %s", e.user_message or e)
            raise PaymentDeclined(e.user_message or str(e)) from e
        except stripe.StripeError as e:
            logger.error("Stripe charge failed: %s", e)
            raise PaymentProviderError(str(e)) from e

        if intent.status in FAILED_INTENT_STATUSES:
            raise PaymentDeclined(f"Payment not completed (status={intent.status})")

        return PaymentResult(
            id=intent.id,
            status=intent.status,
            method=str(intent.payment_method or payment_method_id),
        )

    def refund(self, payment_id: str) -> None:
        try:
            stripe.Refund.create(api_key=self.api_key, payment_intent=payment_id)
        except stripe.StripeError as e:
            logger.error("Stripe refund failed for %s: %s", payment_id, e)
            raise PaymentProviderError(str(e)) from e

    def create_hosted_session(
        self,
        line_items: list[HostedLineItem],
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> HostedSession:
        stripe_items = [
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {
                        "name": item.name,
                        **({"description": item.description} if item.description else {}),
                        **({"images": item.images} if item.images else {}),
                    },
                    "unit_amount": item.unit_amount,
                },
                "quantity": item.quantity,
            }
            for item in line_items
        ]
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=stripe_items,
                mode="payment",
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session failed: %s", e)
            raise PaymentProviderError(str(e)) from e
        return HostedSession(id=session.id, url=session.url)

    def get_session_status(self, session_id: str) -> bool:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed for %s: %s", session_id, e)
            raise PaymentProviderError(str(e)) from e
        return session.payment_status == "paid"


def to_minor_units(amount: float) -> int:
    """
    Convert a price to integer cents.

    Prices carry at most 2 decimals, so the product is truncated after a
    small epsilon absorbs float error (19.99 * 100 == 1998.9999...).
    """
    return int(amount * 100 + 1e-6)


@lru_cache
def _stripe_gateway() -> StripePaymentGateway:
    settings = get_settings()
    if not settings.STRIPE_SECRET_KEY:
        raise RuntimeError("Missing STRIPE_SECRET_KEY in .env")
    return StripePaymentGateway(settings.STRIPE_SECRET_KEY)


def get_payment_gateway() -> PaymentGateway:
    """
    FastAPI dependency returning the configured gateway.
    Tests override it with a fake.
    """
    return _stripe_gateway()
