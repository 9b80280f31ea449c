"""HTTP views for products and customer feedback.

Product writes arrive as multipart forms carrying an optional ``image`` file
which is pushed to the image store before the record is written. Store,
upload and not-found errors are turned into JSON error bodies by the
exception handlers registered in ``storefront.main``.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from .domain import (
    FeedbackStore,
    ImageStore,
    InvalidProduct,
    ProductChanges,
    ProductNotFound,
    ProductStore,
    StoreError,
)
from .providers import get_feedback_store, get_image_store, get_product_store
from .schemas import FeedbackIn, FeedbackOut, ProductOut

router = APIRouter(tags=["catalog"])
feedback_router = APIRouter(prefix="/api/feedbacks", tags=["feedback"])

logger = logging.getLogger(__name__)


def _upload(images: ImageStore, image: UploadFile) -> str:
    return images.upload(image.filename, image.file.read(), image.content_type)


@contextmanager
def _orphan_on_failure(url: Optional[str]):
    """Log the uploaded image URL when the record write that follows fails."""
    try:
        yield
    except (StoreError, ProductNotFound):
        if url:
            logger.error("orphaned image", extra={"image_url": url})
        raise


@router.get("/products", response_model=List[ProductOut])
def list_products(store: ProductStore = Depends(get_product_store)):
    """Return every product, newest first."""
    return [ProductOut.from_domain(p) for p in store.list_products()]


@router.post("/products", response_model=ProductOut)
def create_product(
    name: str = Form(...),
    category: str = Form(...),
    price: str = Form(...),
    desc: Optional[str] = Form(None),
    stock: Optional[int] = Form(None, ge=0),
    force_out_of_stock: Optional[bool] = Form(None, alias="isOutOfStock"),
    image: Optional[UploadFile] = File(None),
    store: ProductStore = Depends(get_product_store),
    images: ImageStore = Depends(get_image_store),
):
    """Create a product from a multipart form.

    Returns:
        ProductOut: The stored product.

    Raises:
        InvalidProduct: When no image file is attached or it is not an
            allowed format (HTTP 400).
    """
    if image is None or not image.filename:
        raise InvalidProduct("Image required")
    url = _upload(images, image)
    with _orphan_on_failure(url):
        product = store.create_product(
            ProductChanges(
                name=name,
                category=category,
                price=price,
                desc=desc,
                image=url,
                stock=stock,
                force_out_of_stock=force_out_of_stock,
            )
        )
    return ProductOut.from_domain(product)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: uuid.UUID,
    name: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    desc: Optional[str] = Form(None),
    stock: Optional[int] = Form(None, ge=0),
    force_out_of_stock: Optional[bool] = Form(None, alias="isOutOfStock"),
    image: Optional[UploadFile] = File(None),
    store: ProductStore = Depends(get_product_store),
    images: ImageStore = Depends(get_image_store),
):
    """Partially update a product; a new image replaces the old URL."""
    store.get_product(product_id)
    url = _upload(images, image) if image is not None and image.filename else None
    with _orphan_on_failure(url):
        product = store.update_product(
            product_id,
            ProductChanges(
                name=name,
                category=category,
                price=price,
                desc=desc,
                image=url,
                stock=stock,
                force_out_of_stock=force_out_of_stock,
            ),
        )
    return ProductOut.from_domain(product)


@router.delete("/products/{product_id}")
def delete_product(product_id: uuid.UUID, store: ProductStore = Depends(get_product_store)):
    store.delete_product(product_id)
    return {"message": "Product deleted"}


@feedback_router.post("")
def create_feedback(body: FeedbackIn, store: FeedbackStore = Depends(get_feedback_store)):
    store.add_feedback(body.name, body.message)
    return {"success": True}


@feedback_router.get("", response_model=List[FeedbackOut])
def list_feedbacks(
    limit: int = Query(20, ge=1, le=100),
    store: FeedbackStore = Depends(get_feedback_store),
):
    """Return the most recent feedback entries, newest first."""
    return [FeedbackOut.from_domain(f) for f in store.list_feedbacks(limit)]
