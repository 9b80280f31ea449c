"""Pydantic schemas for the catalog and feedback endpoints.

Outputs are built from the domain dataclasses and serialized with the
storefront's camelCase keys.
"""

import uuid
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .domain import Feedback, Product


class ProductOut(BaseModel):
    """Product as returned by the API.

    ``isOutOfStock`` is always derived server-side; ``force_out_of_stock`` is
    not exposed.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    name: str
    category: str
    price: str
    desc: Optional[str] = None
    image: str
    stock: int
    is_out_of_stock: bool = Field(alias="isOutOfStock")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_domain(cls, product: Product) -> "ProductOut":
        return cls(**asdict(product))


class FeedbackIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=5000)


class FeedbackOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    name: str
    message: str
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, feedback: Feedback) -> "FeedbackOut":
        return cls(**asdict(feedback))
