# storefront/services/cart_service.py
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from storefront.core.errors import NotFoundError
from storefront.models.cart import Cart, CartLine
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import (
    CartLineCreate,
    CartLineUpdate,
    CartLineRead,
    CartRead,
)
from storefront.schemas.product import ProductRead

logger = logging.getLogger(__name__)


def find_line(
    lines: list[CartLine],
    product_id: uuid.UUID,
    size: str,
    color: str,
) -> CartLine | None:
    """
    Lines are the same iff product, size and color all match.
    """
    for line in lines:
        if line.product_id == product_id and line.size == size and line.color == color:
            return line
    return None


def reprice_lines(lines: list[CartLine], products: dict[uuid.UUID, Product]) -> float:
    """
    Recompute every line_total from the current catalog price and
    return the cart total.

    A line whose product has left the catalog keeps its last total.
    """
    total = 0.0
    for line in lines:
        product = products.get(line.product_id)
        if product is not None:
            line.line_total = product.price * line.quantity
        total += line.line_total
    return total


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - validate product existence
      - keep (product, size, color) unique within a cart
      - replace (not add to) quantities on repeated adds
      - re-price every line from the catalog on each mutation
      - keep Cart.total_price equal to the sum of line totals

    Concurrent writes to the same cart are last-writer-wins.
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _get_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.cart_repo.get_for_user(session, user_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    def _save(
        self,
        session: Session,
        cart: Cart,
        lines: list[CartLine],
    ) -> CartRead:
        products = self.product_repo.get_many(session, (l.product_id for l in lines))
        cart.total_price = reprice_lines(lines, products)
        cart = self.cart_repo.save(session, cart, lines)
        return self._build_cart_dto(cart, lines, products)

    def _build_cart_dto(
        self,
        cart: Cart,
        lines: list[CartLine],
        products: dict[uuid.UUID, Product],
    ) -> CartRead:
        line_reads: list[CartLineRead] = []
        total_qty = 0

        for line in lines:
            product = products.get(line.product_id)
            total_qty += line.quantity
            line_reads.append(
                CartLineRead(
                    id=line.id,
                    product_id=line.product_id,
                    product=ProductRead.model_validate(product) if product else None,
                    quantity=line.quantity,
                    size=line.size,
                    color=line.color,
                    line_total=line.line_total,
                )
            )

        return CartRead(
            id=cart.id,
            user_id=cart.user_id,
            lines=line_reads,
            total_quantity=total_qty,
            total_price=cart.total_price,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )

    # ---- public operations ----

    def get_cart(self, session: Session, user_id: uuid.UUID) -> CartRead:
        """
        Return the user's cart with every product resolved.

        Raises NotFoundError if the user has no cart.
        """
        cart = self._get_cart(session, user_id)
        lines = self.cart_repo.list_lines(session, cart.id)
        products = self.product_repo.get_many(session, (l.product_id for l in lines))
        return self._build_cart_dto(cart, lines, products)

    def add_or_update_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartLineCreate,
    ) -> CartRead:
        """
        Add a product to the user's cart, creating the cart if needed.

        Rules:
          - product must exist
          - same (product, size, color) already present => quantity is
            replaced with payload.quantity, not added to it
          - line totals come from the current catalog price
        """
        try:
            return self._add_or_update_line(session, user_id, payload)
        except IntegrityError:
            # Another request created the same cart or line first; redo the
            # write against the row that now exists.
            session.rollback()
            logger.info("Concurrent cart write for user %s, retrying", user_id)
            return self._add_or_update_line(session, user_id, payload)

    def _add_or_update_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartLineCreate,
    ) -> CartRead:
        self._get_product(session, payload.product_id)

        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            cart = Cart(user_id=user_id)
            lines: list[CartLine] = []
            logger.info("Creating cart for user %s", user_id)
        else:
            lines = self.cart_repo.list_lines(session, cart.id)

        existing = find_line(lines, payload.product_id, payload.size, payload.color)
        if existing:
            existing.quantity = payload.quantity
        else:
            lines.append(
                CartLine(
                    cart_id=cart.id,
                    product_id=payload.product_id,
                    quantity=payload.quantity,
                    size=payload.size,
                    color=payload.color,
                    line_total=0.0,
                )
            )

        return self._save(session, cart, lines)

    def update_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartLineUpdate,
    ) -> CartRead:
        """
        Set the quantity of an existing line.

        404 if there is no cart, no matching line, or the product is gone.
        """
        cart = self._get_cart(session, user_id)
        lines = self.cart_repo.list_lines(session, cart.id)

        line = find_line(lines, product_id, payload.size, payload.color)
        if not line:
            raise NotFoundError("Product not in cart")

        self._get_product(session, product_id)
        line.quantity = payload.quantity

        return self._save(session, cart, lines)

    def remove_line(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        size: str,
        color: str,
    ) -> CartRead:
        """
        Remove the line matching (product, size, color).

        Removing a line that is not there is not an error; the cart is
        saved and returned unchanged.
        """
        cart = self._get_cart(session, user_id)
        lines = [
            l
            for l in self.cart_repo.list_lines(session, cart.id)
            if not (l.product_id == product_id and l.size == size and l.color == color)
        ]
        return self._save(session, cart, lines)

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> None:
        """
        Delete the user's cart entirely. The next add creates a fresh one.
        """
        cart = self._get_cart(session, user_id)
        self.cart_repo.delete(session, cart)
        logger.info("Deleted cart for user %s", user_id)
