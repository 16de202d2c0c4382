# storefront/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from storefront.core.auth import Identity, require_auth
from storefront.core.payments import PaymentGateway, get_payment_gateway
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.order import OrderCancelRead, OrderCreate, OrderRead
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(order_repo, cart_repo, product_repo)


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Charge the payment method and turn the current cart into an order.

    The cart is deleted once the order is saved.
    """
    return service.place_order(session, identity.user_id, payload, gateway)


@router.get("", response_model=list[OrderRead])
def list_my_orders(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    List the authenticated user's orders, newest first.
    """
    return service.list_orders(session, identity.user_id)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Get a single order. Only the owner (or an admin) can see it.
    """
    return service.get_order(session, identity, order_id)


@router.delete("/{order_id}", response_model=OrderCancelRead)
def cancel_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Cancel an order: refund its payment, then delete it.
    """
    return service.cancel_order(session, identity, order_id, gateway)
