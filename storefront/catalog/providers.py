"""Service provider helpers for the catalog endpoints.

These factories are used as FastAPI dependencies. Repositories always use
the configured database; the image store is the Cloudinary client when
``settings.USE_HTTP_ADAPTERS`` is truthy and an in-memory stub otherwise.
"""

from .. import settings
from .domain import FeedbackStore, ImageStore, ProductStore
from .repository import FeedbackRepository, ProductRepository
from .storage import CloudinaryUploader, ImageStoreStub

_stub_images = ImageStoreStub()


def get_product_store() -> ProductStore:
    return ProductRepository()


def get_feedback_store() -> FeedbackStore:
    return FeedbackRepository()


def get_image_store() -> ImageStore:
    if settings.USE_HTTP_ADAPTERS:
        return CloudinaryUploader()
    return _stub_images
