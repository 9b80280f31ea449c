"""Domain models, ports and errors for the catalog and customer feedback.

Products and feedback are plain records; the only rule living here is the
derived out-of-stock flag, which is recomputed on every write from the stock
count and the flag the admin may force.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

ALLOWED_IMAGE_FORMATS = ("jpg", "png", "jpeg")


# ---- Errors ----
class CatalogError(Exception):
    """Base class for catalog errors."""


class InvalidProduct(CatalogError):
    """Product input is missing or malformed. Safe to show to the caller."""


class UnsupportedImage(InvalidProduct):
    """The uploaded file is not an allowed image format."""


class ProductNotFound(CatalogError):
    pass


class StoreError(CatalogError):
    """The persistence layer failed."""


class ImageUploadError(CatalogError):
    """The object store failed to accept an image."""


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Product:
    """A catalog entry as returned by the store.

    Attributes:
        id: Public UUID of the product.
        name: Display name.
        category: Free-form category label.
        price: Price as displayed by the storefront.
        desc: Optional description.
        image: Public URL of the product image.
        stock: Units in stock.
        is_out_of_stock: Derived flag, see ``is_out_of_stock``.
        force_out_of_stock: Flag set by the admin regardless of stock.
    """

    id: uuid.UUID
    name: str
    category: str
    price: str
    desc: Optional[str]
    image: str
    stock: int
    is_out_of_stock: bool
    force_out_of_stock: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class ProductChanges:
    """Fields supplied by a create or update request; None means unchanged."""

    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[str] = None
    desc: Optional[str] = None
    image: Optional[str] = None
    stock: Optional[int] = None
    force_out_of_stock: Optional[bool] = None


@dataclass(frozen=True)
class Feedback:
    id: uuid.UUID
    name: str
    message: str
    created_at: datetime


def is_out_of_stock(stock: int, forced: bool) -> bool:
    """Derive the out-of-stock flag from the stock count and the forced flag."""
    return stock == 0 or bool(forced)


def check_image_filename(filename: Optional[str]) -> str:
    """Return the lowercased extension of an allowed image filename.

    Raises:
        UnsupportedImage: When the extension is not jpg, jpeg or png.
    """
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    if ext not in ALLOWED_IMAGE_FORMATS:
        raise UnsupportedImage(f"Image must be one of: {', '.join(ALLOWED_IMAGE_FORMATS)}")
    return ext


# ---- Ports (DIP) ----
class ProductStore(Protocol):
    """Port describing product persistence.

    All methods raise ``StoreError`` when the underlying store fails.
    """

    def list_products(self) -> List[Product]:
        """Return every product, newest first."""
        raise NotImplementedError()

    def get_product(self, product_id: uuid.UUID) -> Product:
        """Raises ProductNotFound when no product has ``product_id``."""
        raise NotImplementedError()

    def create_product(self, changes: ProductChanges) -> Product:
        raise NotImplementedError()

    def update_product(self, product_id: uuid.UUID, changes: ProductChanges) -> Product:
        """Apply the non-None fields of ``changes``; raises ProductNotFound."""
        raise NotImplementedError()

    def delete_product(self, product_id: uuid.UUID) -> None:
        """Raises ProductNotFound when no product has ``product_id``."""
        raise NotImplementedError()


class FeedbackStore(Protocol):
    """Port describing feedback persistence."""

    def add_feedback(self, name: str, message: str) -> Feedback:
        raise NotImplementedError()

    def list_feedbacks(self, limit: int) -> List[Feedback]:
        """Return at most ``limit`` feedback entries, newest first."""
        raise NotImplementedError()


class ImageStore(Protocol):
    """Port describing the binary-object store used for product images."""

    def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store an image and return its public URL.

        Raises:
            ImageUploadError: When the object store rejects the upload or
                cannot be reached.
        """
        raise NotImplementedError()
