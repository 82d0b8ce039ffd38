"""Product DTOs for the Product Ledger.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the ledger.
DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: direct catalog entry.
- ``UpdateProductDTO``: partial catalog edit (stock is not editable here).
- ``PlaceholderProductDTO``: catalog entry proposed by a supplier on a
  purchase order, pending approval.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.products.models import ProductStatus, normalize_name


def _required_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} must not be empty.")
    return value.strip()


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for direct catalog entries.

    Validates:
    - ``name`` and ``category`` are non-empty; ``name`` is normalised.
    - ``price`` is greater than zero (catalog entries are available).
    - ``stock`` and ``min_stock_level`` are non-negative.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    price: Decimal
    stock: int = 0
    min_stock_level: int = 0
    description: str = ""
    supplied_by: str = ""

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return normalize_name(_required_text(v, "Product name"))

    @field_validator("category")
    @classmethod
    def category_must_not_be_empty(cls, v: str) -> str:
        return _required_text(v, "Category")

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock", "min_stock_level")
    @classmethod
    def must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock values cannot be negative.")
        return v


class UpdateProductDTO(BaseModel):
    """Immutable DTO for catalog edits.

    All fields are optional; only supplied fields are updated.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[Decimal] = None
    min_stock_level: Optional[int] = None
    description: Optional[str] = None
    status: Optional[ProductStatus] = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return normalize_name(_required_text(v, "Product name"))

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("min_stock_level")
    @classmethod
    def min_stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Minimum stock level cannot be negative.")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class PlaceholderProductDTO(BaseModel):
    """Immutable DTO for a product introduced by a supplier's purchase order."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    price: Decimal
    stock: int
    description: str
    supplied_by: str
    min_stock_level: int = 0

    @field_validator("name")
    @classmethod
    def name_is_normalised(cls, v: str) -> str:
        return normalize_name(_required_text(v, "Product name"))
