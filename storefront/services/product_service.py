# storefront/services/product_service.py
import uuid

from sqlmodel import Session

from storefront.core.errors import NotFoundError
from storefront.models.product import Product, ProductReview
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product import (
    ProductCreate,
    ProductDetailRead,
    ProductUpdate,
    ReviewCreate,
    ReviewRead,
)

LATEST_LIMIT = 15
BEST_SELLING_LIMIT = 4


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - public catalog reads (list, detail, latest, best-selling)
      - admin-only writes (enforced at router via require_admin)
      - customer reviews
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Reads -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        return self.repo.list_products(session, skip=skip, limit=limit)

    def latest_products(self, session: Session) -> list[Product]:
        return self.repo.list_latest(session, LATEST_LIMIT)

    def best_selling_products(self, session: Session) -> list[Product]:
        return self.repo.list_best_selling(session, BEST_SELLING_LIMIT)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_product_detail(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> ProductDetailRead:
        product = self.get_product(session, product_id)
        reviews = self.repo.list_reviews(session, product.id)
        return ProductDetailRead(
            **product.model_dump(),
            reviews=[ReviewRead.model_validate(r) for r in reviews],
        )

    # ----- Admin writes -----

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        product = Product(**payload.model_dump())
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update: only fields present in the payload are changed.
        """
        product = self.get_product(session, product_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(product, key, value)
        return self.repo.update(session, product)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        product = self.get_product(session, product_id)
        self.repo.delete(session, product)

    # ----- Reviews -----

    def add_review(
        self,
        session: Session,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        payload: ReviewCreate,
    ) -> ProductReview:
        product = self.get_product(session, product_id)
        review = ProductReview(
            product_id=product.id,
            user_id=user_id,
            comment=payload.comment,
            rating=payload.rating,
        )
        return self.repo.create_review(session, review)
