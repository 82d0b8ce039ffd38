"""Product repository interface.

Extends ``IRepository[Product]`` with the look-ups and the atomic stock
primitive the Product Ledger is built on.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[Product]:
        """Retrieve a product by its normalised name."""

    @abstractmethod
    def exists(self, id: Any) -> bool:
        """Return ``True`` when a product row with this id exists."""

    @abstractmethod
    def apply_stock_delta(self, id: Any, delta: int) -> int:
        """Atomically run ``stock += delta`` unless the result would be negative.

        Single conditional UPDATE; returns the number of rows changed
        (``0`` when the product is missing or the guard rejected it).
        """

    @abstractmethod
    def low_stock(self) -> List[Product]:
        """Products whose stock is at or below their minimum level."""

    @abstractmethod
    def categories(self) -> List[str]:
        """Distinct product categories, sorted."""

    @abstractmethod
    def has_pending_references(self, id: Any) -> bool:
        """Whether a pending transaction references this product."""
