# storefront/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session, select

from storefront.models.cart import Cart, CartLine


class CartRepository:
    """
    Data access layer for carts and cart_lines.

    save() writes the whole cart (header + lines) in one commit, so the
    stored document is whatever the last writer saved.
    """

    def get_for_user(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def list_lines(self, session: Session, cart_id: uuid.UUID) -> list[CartLine]:
        stmt = (
            select(CartLine)
            .where(CartLine.cart_id == cart_id)
            .order_by(CartLine.position)
        )
        return list(session.exec(stmt).all())

    def save(self, session: Session, cart: Cart, lines: list[CartLine]) -> Cart:
        """
        Persist the cart and make its stored lines match `lines` exactly.
        Lines no longer present are deleted.
        """
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)
        session.flush()

        keep = {line.id for line in lines}
        for stored in self.list_lines(session, cart.id):
            if stored.id not in keep:
                session.delete(stored)
        session.flush()

        for position, line in enumerate(lines):
            line.cart_id = cart.id
            line.position = position
            session.add(line)

        session.commit()
        session.refresh(cart)
        return cart

    def bump_payment_attempt(self, session: Session, cart: Cart) -> Cart:
        """
        Record a declined charge. Lines, totals and updated_at are left as they are.
        """
        cart.payment_attempt += 1
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def delete(self, session: Session, cart: Cart, commit: bool = True) -> None:
        for line in self.list_lines(session, cart.id):
            session.delete(line)
        session.delete(cart)
        if commit:
            session.commit()
