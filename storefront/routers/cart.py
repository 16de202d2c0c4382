# storefront/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.core.auth import Identity, require_auth
from storefront.database import get_session
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import CartRead, CartLineCreate, CartLineUpdate
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=CartRead)
def get_my_cart(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Get current user's cart with products resolved.

    404 if the user has no cart yet.
    """
    return service.get_cart(session, identity.user_id)


@router.post("", response_model=CartRead)
def add_to_cart(
    payload: CartLineCreate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Add a product/size/color to the cart, or replace the quantity of the
    matching line.

    Returns the updated cart.
    """
    return service.add_or_update_line(session, identity.user_id, payload)


@router.patch("/{product_id}", response_model=CartRead)
def update_cart_line(
    product_id: uuid.UUID,
    payload: CartLineUpdate,
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Update quantity of a line already in the cart.

    Returns the updated cart.
    """
    return service.update_line(
        session=session,
        user_id=identity.user_id,
        product_id=product_id,
        payload=payload,
    )


@router.delete("/{product_id}", response_model=CartRead)
def remove_cart_line(
    product_id: uuid.UUID,
    size: str = Query(..., min_length=1),
    color: str = Query(..., min_length=1),
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Remove a product/size/color line from the cart.

    Removing a line that is not in the cart returns the cart unchanged.
    """
    return service.remove_line(
        session,
        identity.user_id,
        product_id,
        size=size.strip(),
        color=color.strip(),
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(
    session: Session = Depends(get_session),
    identity: Identity = Depends(require_auth),
):
    """
    Delete the whole cart.
    """
    service.clear_cart(session, identity.user_id)
