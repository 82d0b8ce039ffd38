"""Product model with stock control.

Business rules implemented:
- Product name is unique once normalised (stripped, lower-cased).
- Price can never be negative and must be greater than zero while the
  product is available for sale.
- Stock and minimum stock level can never be negative (DB constraints).
- Placeholders created from purchase orders start as ``not available``.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    AVAILABLE = "available", "Available"
    NOT_AVAILABLE = "not available", "Not available"


def normalize_name(name: str) -> str:
    return " ".join(name.split()).lower()


class Product(BaseModel):
    """Product aggregate root.

    ``stock`` is only ever changed through the ledger's conditional
    update; ``save()`` is used for catalog fields.
    """

    name = models.CharField(max_length=255, unique=True)
    category = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock = models.PositiveIntegerField(default=0)
    min_stock_level = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.AVAILABLE,
    )
    supplied_by = models.CharField(max_length=64, blank=True, default="")
    created_by = models.CharField(max_length=64, blank=True, default="")
    last_updated_by = models.CharField(max_length=64, blank=True, default="")
    approved_by = models.CharField(max_length=64, blank=True, default="")
    approved_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(min_stock_level__gte=0),
                name="products_min_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(status=ProductStatus.NOT_AVAILABLE)
                | models.Q(price__gt=0),
                name="products_available_price_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Stock helpers
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.AVAILABLE

    @property
    def purchasable_quantity(self) -> int:
        """``stock - min_stock_level`` clamped to zero."""
        return max(self.stock - self.min_stock_level, 0)

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock_level

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.name:
            self.name = normalize_name(self.name)
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})
        if self.is_available and self.price is not None and self.price <= 0:
            raise ValidationError(
                {"price": "Available products must have a price greater than zero."}
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.name:
            self.name = normalize_name(self.name)
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                name=self.name,
                status=self.status,
            )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.name} ({self.category})"
