# storefront/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.core.auth import Identity, require_auth
from storefront.core.payments import PaymentGateway, get_payment_gateway
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.checkout import (
    CheckoutSessionRead,
    CheckoutStatusRead,
    CheckoutStatusRequest,
)
from storefront.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["Checkout"])

service = CheckoutService(CartRepository(), ProductRepository())


@router.post("/session", response_model=CheckoutSessionRead)
def create_checkout_session(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Start a provider-hosted checkout for the current cart.
    Returns the URL to redirect the customer to.
    """
    return service.create_session(session, identity.user_id, gateway)


@router.post("/status", response_model=CheckoutStatusRead)
def checkout_status(
    payload: CheckoutStatusRequest,
    identity: Identity = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Report whether a hosted checkout session has been paid.
    """
    return service.session_status(payload.session_id, gateway)
