"""Pydantic schemas for the payment endpoints.

Request bodies use the storefront's camelCase keys (``customerName``,
``cartItems``...) as aliases; Python code uses snake_case field names.
"""

import re
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain import CheckoutRequest

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CheckoutIn(BaseModel):
    """Input schema for payment initiation.

    Attributes:
        customer_name: Buyer full name (``customerName``).
        address: Delivery address.
        phone: Contact phone number.
        email: Buyer email; must look like an address.
        cart_items: Non-empty list of opaque cart line items (``cartItems``).
        amount: Total in the main currency unit, strictly positive.
        bus_stop: Optional nearest bus stop (``busStop``).
        delivery_mode: Optional delivery option (``deliveryMode``).
    """

    model_config = ConfigDict(populate_by_name=True)

    customer_name: str = Field(alias="customerName", min_length=1)
    address: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: str
    cart_items: List[Any] = Field(alias="cartItems", min_length=1)
    amount: Decimal = Field(gt=0)
    bus_stop: Optional[str] = Field(default=None, alias="busStop")
    delivery_mode: Optional[str] = Field(default=None, alias="deliveryMode")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Strip and validate the email shape.

        Raises:
            ValueError: When the value does not look like an email address.
        """
        v2 = v.strip()
        if not EMAIL_RE.match(v2):
            raise ValueError("Invalid email address")
        return v2

    def to_domain(self) -> CheckoutRequest:
        return CheckoutRequest(
            customer_name=self.customer_name,
            address=self.address,
            phone=self.phone,
            email=self.email,
            cart_items=list(self.cart_items),
            amount=self.amount,
            bus_stop=self.bus_stop,
            delivery_mode=self.delivery_mode,
        )


class InitiateOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference: str
    public_key: str = Field(alias="publicKey")


class VerifyIn(BaseModel):
    reference: str


class VerifyOut(BaseModel):
    status: Literal["success", "failed"]
    message: str
