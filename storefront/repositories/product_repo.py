# storefront/repositories/product_repo.py
import uuid
from typing import Iterable

from sqlmodel import Session, select

from storefront.models.product import Product, ProductReview


class ProductRepository:
    """
    Data access layer for Product & ProductReview.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        """
        Resolve a batch of product ids in one query.
        Missing ids are simply absent from the returned map.
        """
        ids = set(product_ids)
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        stmt = select(Product).order_by(Product.created_at).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def list_latest(self, session: Session, limit: int) -> list[Product]:
        stmt = select(Product).order_by(Product.created_at.desc()).limit(limit)
        return session.exec(stmt).all()

    def list_best_selling(self, session: Session, limit: int) -> list[Product]:
        stmt = select(Product).order_by(Product.sales_count.desc()).limit(limit)
        return session.exec(stmt).all()

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        for review in self.list_reviews(session, product.id):
            session.delete(review)
        session.delete(product)
        session.commit()

    # ----- Reviews -----

    def list_reviews(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductReview]:
        stmt = (
            select(ProductReview)
            .where(ProductReview.product_id == product_id)
            .order_by(ProductReview.created_at)
        )
        return session.exec(stmt).all()

    def create_review(self, session: Session, review: ProductReview) -> ProductReview:
        session.add(review)
        session.commit()
        session.refresh(review)
        return review
