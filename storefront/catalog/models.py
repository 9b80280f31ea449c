"""SQLAlchemy models for products and feedback."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import mapped_column

from ..db import Base


def _now() -> datetime:
    # python-side default keeps microsecond ordering on every backend
    return datetime.now(timezone.utc)


class ProductModel(Base):
    """SQLAlchemy model representing a catalog product.

    Attributes:
        id: Public UUID primary key exposed to clients.
        name: Display name.
        category: Category label.
        price: Price as displayed by the storefront.
        description: Optional description (``desc`` in the API).
        image: Public URL of the uploaded image.
        stock: Units in stock.
        force_out_of_stock: Out-of-stock flag forced by the admin.
        is_out_of_stock: Derived flag, recomputed on every write.
    """

    __tablename__ = "products"

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name = mapped_column(String(200), nullable=False)
    category = mapped_column(String(100), nullable=False)
    price = mapped_column(String(64), nullable=False)
    description = mapped_column(Text, nullable=True)
    image = mapped_column(String(500), nullable=False)
    stock = mapped_column(Integer, nullable=False, default=0)
    force_out_of_stock = mapped_column(Boolean, nullable=False, default=False)
    is_out_of_stock = mapped_column(Boolean, nullable=False, default=True)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = mapped_column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)


class FeedbackModel(Base):
    """Persisted customer feedback. Rows are never updated."""

    __tablename__ = "feedbacks"

    id = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name = mapped_column(String(200), nullable=False)
    message = mapped_column(Text, nullable=False)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, default=_now, index=True)
