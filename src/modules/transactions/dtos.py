"""Transaction DTOs for the Order Builder and the gateway.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

Purchase line items are a tagged variant discriminated by ``kind``.  When
``kind`` is omitted it is inferred: a line naming a ``product_id`` is a
restock, anything else describes a new product.

- ``ExistingProductLine`` (``kind="existing"``): restock of a catalogued
  product at the supplier's price.
- ``NewProductLine`` (``kind="new"``): a product the catalog does not have
  yet; building the order creates a placeholder for it.

Sales line items (``SalesLine``) only name a product and a quantity; the
unit price is read from the catalog when the order is built.

``parse_sales_lines`` / ``parse_purchase_lines`` accept DTO instances or
plain mappings and raise ``InvalidLineItem`` for anything malformed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Iterable, List, Literal, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from modules.products.dtos import PlaceholderProductDTO
from modules.transactions.exceptions import InvalidLineItem

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class SalesLine(BaseModel):
    """A customer's request for ``quantity`` units of one product."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["existing"] = "existing"
    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class ExistingProductLine(BaseModel):
    """Purchase line for a product that is already in the catalog."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["existing"] = "existing"
    product_id: UUID
    quantity: int
    price: Decimal = Decimal("0.00")

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price cannot be negative.")
        return v


class NewProductLine(BaseModel):
    """Purchase line introducing a product the catalog does not know yet.

    Every descriptive field is required; ``stock`` is the quantity the
    supplier delivers.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["new"] = "new"
    name: str
    category: str
    price: Decimal
    stock: int
    description: str
    min_stock_level: int = 0

    @field_validator("name", "category", "description")
    @classmethod
    def text_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty.")
        return v.strip()

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("stock")
    @classmethod
    def stock_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Stock must be at least 1.")
        return v

    @field_validator("min_stock_level")
    @classmethod
    def min_stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Minimum stock level cannot be negative.")
        return v

    @property
    def quantity(self) -> int:
        return self.stock

    def to_placeholder(self, supplier_id: str) -> PlaceholderProductDTO:
        return PlaceholderProductDTO(
            name=self.name,
            category=self.category,
            price=self.price,
            stock=self.stock,
            description=self.description,
            min_stock_level=self.min_stock_level,
            supplied_by=supplier_id,
        )


def _purchase_line_kind(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind is not None:
            return str(kind)
        return "existing" if value.get("product_id") is not None else "new"
    return getattr(value, "kind", None)


PurchaseLine = Annotated[
    Union[
        Annotated[ExistingProductLine, Tag("existing")],
        Annotated[NewProductLine, Tag("new")],
    ],
    Discriminator(_purchase_line_kind),
]

_SALES_LINES = TypeAdapter(List[SalesLine])
_PURCHASE_LINES = TypeAdapter(List[PurchaseLine])


def parse_sales_lines(items: Iterable[Any]) -> List[SalesLine]:
    """Coerce raw or typed sales lines; ``InvalidLineItem`` on failure."""
    return _parse(_SALES_LINES, items)


def parse_purchase_lines(
    items: Iterable[Any],
) -> List[Union[ExistingProductLine, NewProductLine]]:
    """Coerce raw or typed purchase lines; ``InvalidLineItem`` on failure."""
    return _parse(_PURCHASE_LINES, items)


def _parse(adapter: TypeAdapter, items: Iterable[Any]) -> list:
    if items is None or isinstance(items, (str, bytes)):
        raise InvalidLineItem("Line items must be a list.")
    items = list(items)
    if not items:
        raise InvalidLineItem("Order must have at least one line item.")
    try:
        return adapter.validate_python(items)
    except ValidationError as exc:
        raise InvalidLineItem(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(parts)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderCreatedDTO(BaseModel):
    """Result of building a sales or purchase order."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reference: str
    status: str
    total_amount: Optional[Decimal] = None


class TransitionResultDTO(BaseModel):
    """Result of a confirmation or approval decision."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: str
