"""Product domain exceptions.

Raised by the Product Ledger when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class ProductAlreadyExists(Exception):
    """A product with the same normalised name already exists."""


class ProductNotFound(Exception):
    """The requested product does not exist."""


class ProductNotAvailable(Exception):
    """The product exists but is not available for sale (e.g. a placeholder)."""


class ProductInUse(Exception):
    """The product is referenced by a pending transaction and cannot be removed."""


class InsufficientStock(Exception):
    """A stock decrement would take the product below zero."""

    def __init__(self, message: str, product_id: str = "", requested: int = 0) -> None:
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
