"""Transaction domain exceptions.

Raised by the Order Builder, the State Machine and the gateway when
business rules are violated.  The API layer (Views) catches these and
translates them into appropriate HTTP responses.

Stock and product errors (``InsufficientStock``, ``ProductNotFound``,
``ProductNotAvailable``) are owned by the Product Ledger and re-exported
here so callers of the transaction engine have one import site.
"""

from __future__ import annotations

from modules.core.storage import StorageUnavailable
from modules.products.exceptions import (
    InsufficientStock,
    ProductNotAvailable,
    ProductNotFound,
)


class OrderNotFound(Exception):
    """The requested transaction does not exist (or is of another kind)."""


class OrderNotPending(Exception):
    """A transition was attempted on a transaction that is no longer pending.

    Covers both "already decided" and "lost the race to decide it".
    """


class QuantityExceedsAvailable(Exception):
    """A sales line asks for more than the product's purchasable quantity."""

    def __init__(self, message: str, product_id: str = "", available: int = 0) -> None:
        super().__init__(message)
        self.product_id = product_id
        self.available = available


class InvalidLineItem(Exception):
    """A submitted line item is malformed or misses required fields."""


class Forbidden(Exception):
    """The caller is not the order's counterparty or lacks the required role."""


class InvalidDecision(Exception):
    """The decision token is not one the transition accepts."""


__all__ = [
    "Forbidden",
    "InsufficientStock",
    "InvalidDecision",
    "InvalidLineItem",
    "OrderNotFound",
    "OrderNotPending",
    "ProductNotAvailable",
    "ProductNotFound",
    "QuantityExceedsAvailable",
    "StorageUnavailable",
]
