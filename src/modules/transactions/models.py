"""Transaction, LineItem, and TransactionStatusHistory models.

Business rules implemented:
- Reference auto-generated as a human-readable identifier
  (``SO-YYYYMMDD-XXXXXX`` for sales, ``PO-...`` for purchases).
- LineItem snapshots the unit price at build time (``unit_price``).
- LineItem subtotal is always ``quantity * unit_price`` (calculated on save).
- Line items are frozen once their transaction has left ``pending``.
- Status changes are only written through the repository's
  compare-and-swap update; history rows are append-only.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import DEFAULT_DB_ALIAS, models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.transactions.constants import (
    REFERENCE_MAX_RETRIES,
    REFERENCE_PREFIXES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TransactionKind,
    TransactionStatus,
)


class Transaction(BaseModel):
    """Transaction (order) aggregate root.

    ``counterparty_id`` is the customer for sales and the supplier for
    purchases, as issued by the identity provider.  ``total_amount`` is
    written once, when the order is built.
    """

    reference = models.CharField(max_length=20, unique=True, editable=False)
    kind = models.CharField(max_length=10, choices=TransactionKind.choices)
    counterparty_id = models.CharField(max_length=64, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    decided_by = models.CharField(max_length=64, blank=True, default="")
    decided_at = models.DateTimeField(null=True, blank=True, default=None)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["kind", "status"], name="transactions_kind_status_idx"),
            models.Index(fields=["-created_at"], name="transactions_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the transaction is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid for this kind."""
        allowed = VALID_TRANSITIONS.get(self.kind, {}).get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Reference generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_reference(kind: str) -> str:
        """Generate a human-readable reference: ``SO-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"{REFERENCE_PREFIXES[kind]}-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.reference:
            manager = Transaction.objects.using(kwargs.get("using") or DEFAULT_DB_ALIAS)
            for _ in range(REFERENCE_MAX_RETRIES):
                candidate = self.generate_reference(self.kind)
                if not manager.filter(reference=candidate).exists():
                    self.reference = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique reference after "
                    f"{REFERENCE_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.reference} ({self.status})"


class LineItem(BaseModel):
    """Line item linking a Transaction to a Product.

    ``unit_price`` is a **snapshot** taken when the order was built;
    it never changes even if the product price is updated later.
    ``product_name`` keeps the line readable if the product is removed
    after the transaction has been decided.
    """

    transaction = models.ForeignKey(
        "transactions.Transaction",
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    position = models.PositiveIntegerField(default=0)
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        related_name="line_items",
    )
    product_name = models.CharField(max_length=255, blank=True, default="")
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )
    is_new_product = models.BooleanField(default=False)

    class Meta:
        db_table = "transaction_line_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="line_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="line_items_price_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.transaction.is_pending:
            raise ValidationError(
                "Line items cannot change once the transaction has left pending."
            )
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.subtotal})"


class TransactionStatusHistory(BaseModel):
    """Append-only audit trail for transaction status changes.

    ``actor_id`` is the identity that caused the change; the counterparty
    for creation, the deciding principal for transitions.
    """

    transaction = models.ForeignKey(
        "transactions.Transaction",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=TransactionStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
    )
    actor_id = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "transaction_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["transaction", "created_at"],
                name="tsh_transaction_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.transaction} : {self.old_status} -> {self.new_status}"
