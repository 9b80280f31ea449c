"""Storefront backend: product catalog, customer feedback and payments."""

__version__ = "0.1.0"
