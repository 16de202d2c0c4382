from types import SimpleNamespace

import pytest
import stripe

from storefront.core.payments import (
    HostedLineItem,
    PaymentDeclined,
    PaymentGateway,
    PaymentProviderError,
    StripePaymentGateway,
    to_minor_units,
)


@pytest.mark.parametrize(
    "price, cents",
    [(45.0, 4500), (19.99, 1999), (0.1, 10), (1.005, 100), (0, 0)],
)
def test_to_minor_units_truncates(price, cents):
    assert to_minor_units(price) == cents


@pytest.fixture
def stripe_gateway():
    return StripePaymentGateway("sk_test_dummy")


def test_charge_confirms_payment_intent(monkeypatch, stripe_gateway):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="pi_123", status="succeeded", payment_method="pm_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    result = stripe_gateway.charge(4500, "usd", "pm_abc", idempotency_key="order-1")

    assert (result.id, result.status, result.method) == ("pi_123", "succeeded", "pm_abc")
    assert calls[0]["amount"] == 4500
    assert calls[0]["currency"] == "usd"
    assert calls[0]["confirm"] is True
    assert calls[0]["idempotency_key"] == "order-1"


def test_card_error_is_declined(monkeypatch, stripe_gateway):
    def fake_create(**kwargs):
        raise stripe.CardError("Your card was declined.", None, "card_declined")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    with pytest.raises(PaymentDeclined):
        stripe_gateway.charge(100, "usd", "pm_bad")


def test_unfinished_intent_is_declined(monkeypatch, stripe_gateway):
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "create",
        lambda **kw: SimpleNamespace(id="pi_1", status="requires_payment_method", payment_method=None),
    )

    with pytest.raises(PaymentDeclined):
        stripe_gateway.charge(100, "usd", "pm_bad")


def test_refund_errors_surface(monkeypatch, stripe_gateway):
    def fake_refund(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.Refund, "create", fake_refund)

    with pytest.raises(PaymentProviderError):
        stripe_gateway.refund("pi_123")


def test_hosted_session_line_items(monkeypatch, stripe_gateway):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="cs_1", url="https://checkout.stripe.test/cs_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    hosted = stripe_gateway.create_hosted_session(
        [HostedLineItem(name="Tee", unit_amount=1999, quantity=2, images=["https://cdn.test/t.jpg"])],
        currency="usd",
        success_url="https://shop.test/ok",
        cancel_url="https://shop.test/cancel",
    )

    assert hosted.url == "https://checkout.stripe.test/cs_1"
    item = calls[0]["line_items"][0]
    assert item["quantity"] == 2
    assert item["price_data"]["unit_amount"] == 1999
    assert item["price_data"]["product_data"] == {
        "name": "Tee",
        "images": ["https://cdn.test/t.jpg"],
    }
    assert calls[0]["mode"] == "payment"


def test_session_status(monkeypatch, stripe_gateway):
    monkeypatch.setattr(
        stripe.checkout.Session,
        "retrieve",
        lambda session_id, **kw: SimpleNamespace(payment_status="paid"),
    )
    assert stripe_gateway.get_session_status("cs_1") is True

    monkeypatch.setattr(
        stripe.checkout.Session,
        "retrieve",
        lambda session_id, **kw: SimpleNamespace(payment_status="unpaid"),
    )
    assert stripe_gateway.get_session_status("cs_1") is False


def test_gateway_missing_an_operation_cannot_be_created():
    class ChargeOnlyGateway(PaymentGateway):
        def charge(self, amount, currency, payment_method_id, idempotency_key=None):
            return None

    with pytest.raises(TypeError):
        ChargeOnlyGateway()
