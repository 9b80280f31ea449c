"""Repository layer for persisting products and feedback.

The repositories implement the ``ProductStore`` and ``FeedbackStore`` ports
with SQLAlchemy. They return the frozen domain dataclasses rather than ORM
objects so callers are not coupled to session lifetimes, and they wrap any
``SQLAlchemyError`` in ``StoreError``.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..db import get_session
from .domain import (
    Feedback,
    FeedbackStore,
    Product,
    ProductChanges,
    ProductNotFound,
    ProductStore,
    StoreError,
    is_out_of_stock,
)
from .models import FeedbackModel, ProductModel, _now

logger = logging.getLogger(__name__)


@contextmanager
def _store_session(operation: str):
    """Yield a session, translating SQLAlchemy failures into StoreError."""
    try:
        with get_session() as s:
            yield s
    except SQLAlchemyError as e:
        logger.error("store operation failed", extra={"operation": operation}, exc_info=True)
        raise StoreError(operation) from e


def _to_product(obj: ProductModel) -> Product:
    return Product(
        id=obj.id,
        name=obj.name,
        category=obj.category,
        price=obj.price,
        desc=obj.description,
        image=obj.image,
        stock=obj.stock,
        is_out_of_stock=obj.is_out_of_stock,
        force_out_of_stock=obj.force_out_of_stock,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def _to_feedback(obj: FeedbackModel) -> Feedback:
    return Feedback(id=obj.id, name=obj.name, message=obj.message, created_at=obj.created_at)


class ProductRepository(ProductStore):
    """Product persistence over SQLAlchemy."""

    def list_products(self) -> List[Product]:
        with _store_session("list_products") as s:
            rows = s.execute(
                select(ProductModel).order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
            ).scalars().all()
            return [_to_product(r) for r in rows]

    def get_product(self, product_id: uuid.UUID) -> Product:
        with _store_session("get_product") as s:
            obj = s.get(ProductModel, product_id)
            if obj is None:
                raise ProductNotFound(str(product_id))
            return _to_product(obj)

    def create_product(self, changes: ProductChanges) -> Product:
        """Persist a new product.

        Missing stock defaults to 0, which makes the product out of stock.

        Args:
            changes: Fields of the new product; name, category, price and
                image are expected to be set.

        Returns:
            Product: The stored product with its derived flag.
        """
        stock = changes.stock if changes.stock is not None else 0
        forced = bool(changes.force_out_of_stock)
        with _store_session("create_product") as s:
            obj = ProductModel(
                name=changes.name,
                category=changes.category,
                price=changes.price,
                description=changes.desc,
                image=changes.image,
                stock=stock,
                force_out_of_stock=forced,
                is_out_of_stock=is_out_of_stock(stock, forced),
            )
            s.add(obj)
            s.commit()
            s.refresh(obj)
            return _to_product(obj)

    def update_product(self, product_id: uuid.UUID, changes: ProductChanges) -> Product:
        """Apply a partial update and recompute the out-of-stock flag.

        Raises:
            ProductNotFound: When no product has ``product_id``.
        """
        with _store_session("update_product") as s:
            obj = s.get(ProductModel, product_id)
            if obj is None:
                raise ProductNotFound(str(product_id))

            for attr, column in (
                ("name", "name"),
                ("category", "category"),
                ("price", "price"),
                ("desc", "description"),
                ("image", "image"),
                ("stock", "stock"),
                ("force_out_of_stock", "force_out_of_stock"),
            ):
                value = getattr(changes, attr)
                if value is not None:
                    setattr(obj, column, value)

            obj.is_out_of_stock = is_out_of_stock(obj.stock, obj.force_out_of_stock)
            obj.updated_at = _now()
            s.commit()
            s.refresh(obj)
            return _to_product(obj)

    def delete_product(self, product_id: uuid.UUID) -> None:
        with _store_session("delete_product") as s:
            obj = s.get(ProductModel, product_id)
            if obj is None:
                raise ProductNotFound(str(product_id))
            s.delete(obj)
            s.commit()


class FeedbackRepository(FeedbackStore):
    """Feedback persistence over SQLAlchemy."""

    def add_feedback(self, name: str, message: str) -> Feedback:
        with _store_session("add_feedback") as s:
            obj = FeedbackModel(name=name, message=message)
            s.add(obj)
            s.commit()
            s.refresh(obj)
            return _to_feedback(obj)

    def list_feedbacks(self, limit: int) -> List[Feedback]:
        with _store_session("list_feedbacks") as s:
            rows = s.execute(
                select(FeedbackModel)
                .order_by(FeedbackModel.created_at.desc(), FeedbackModel.id.desc())
                .limit(limit)
            ).scalars().all()
            return [_to_feedback(r) for r in rows]
