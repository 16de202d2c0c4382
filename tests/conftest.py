"""
Pytest configuration and fixtures.
"""
import os

# Settings are read once and cached; configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront.core.payments import (
    HostedSession,
    PaymentDeclined,
    PaymentGateway,
    PaymentProviderError,
    PaymentResult,
    get_payment_gateway,
)
from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Product


class FakeGateway(PaymentGateway):
    """
    Records every call; behaviour is switched with flags.

    Like Stripe, a charge outcome (success or decline) is stored under its
    idempotency key: the same key replays it, and the same key with other
    parameters is rejected.
    """

    def __init__(self):
        self.charges: list[dict] = []
        self.refunds: list[str] = []
        self.sessions: list[dict] = []
        self.outcomes: dict[str, tuple[tuple, object]] = {}
        self.declined_methods: set[str] = set()
        self.decline = False
        self.provider_down = False
        self.paid = True

    def charge(self, amount, currency, payment_method_id, idempotency_key=None):
        self.charges.append(
            {
                "amount": amount,
                "currency": currency,
                "payment_method_id": payment_method_id,
                "idempotency_key": idempotency_key,
            }
        )
        params = (amount, currency, payment_method_id)
        if idempotency_key in self.outcomes:
            stored_params, outcome = self.outcomes[idempotency_key]
            if stored_params != params:
                raise PaymentProviderError(
                    "IdempotencyError: keys for idempotent requests can only be "
                    "used with the same parameters"
                )
        else:
            if self.provider_down:
                raise PaymentProviderError("connection reset")
            if self.decline or payment_method_id in self.declined_methods:
                outcome = PaymentDeclined("Your card was declined.")
            else:
                outcome = PaymentResult(
                    id=f"pi_test_{len(self.charges)}",
                    status="succeeded",
                    method=payment_method_id,
                )
            if idempotency_key is not None:
                self.outcomes[idempotency_key] = (params, outcome)

        if isinstance(outcome, PaymentDeclined):
            raise outcome
        return outcome

    def refund(self, payment_id):
        if self.provider_down:
            raise PaymentProviderError("connection reset")
        self.refunds.append(payment_id)

    def create_hosted_session(self, line_items, currency, success_url, cancel_url):
        if self.provider_down:
            raise PaymentProviderError("connection reset")
        self.sessions.append(
            {
                "line_items": line_items,
                "currency": currency,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return HostedSession(id="cs_test_1", url="https://checkout.test/cs_test_1")

    def get_session_status(self, session_id):
        if self.provider_down:
            raise PaymentProviderError("connection reset")
        return self.paid


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(engine, gateway):
    """API client wired to the test database and the fake gateway."""

    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user_id: uuid.UUID, role: str = "user") -> str:
    return jwt.encode(
        {"userId": str(user_id), "role": role},
        os.environ["JWT_SECRET"],
        algorithm="HS256",
    )


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(uuid.uuid4(), role='admin')}"}


@pytest.fixture
def headers_for():
    """Build auth headers for an arbitrary user."""

    def _headers(user_id: uuid.UUID, role: str = "user") -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, role)}"}

    return _headers


@pytest.fixture
def make_product(session):
    """Factory inserting a product with the given price."""

    def _make(price: float = 10.0, title: str = "Linen shirt", **kwargs) -> Product:
        product = Product(
            title=title,
            description=kwargs.pop("description", f"{title} description"),
            category=kwargs.pop("category", "shirts"),
            price=price,
            stock=kwargs.pop("stock", 100),
            images=kwargs.pop("images", [f"https://cdn.test/{title}.jpg"]),
            **kwargs,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make
