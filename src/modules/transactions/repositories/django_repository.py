"""Django ORM implementation of the Transaction repository.

Satisfies ``ITransactionRepository`` using Django's QuerySet API.
Writes of the aggregate (Transaction + LineItems + first history row)
run in one ``unit_of_work`` so they are persisted atomically.

Concurrency control on status updates is a compare-and-swap: a single
``UPDATE ... WHERE status = <expected>``.  There is no version column
and no row lock held between read and write.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.utils import timezone

from modules.core.storage import StorageContext, as_uuid, guarded, unit_of_work
from modules.transactions.constants import TransactionStatus
from modules.transactions.models import (
    LineItem,
    Transaction,
    TransactionStatusHistory,
)
from modules.transactions.repositories.interfaces import ITransactionRepository

logger = structlog.get_logger(__name__)


class TransactionDjangoRepository(ITransactionRepository):
    """Concrete Transaction repository backed by Django ORM."""

    def __init__(self, context: Optional[StorageContext] = None) -> None:
        self.context = context or StorageContext()

    @property
    def _objects(self):
        return Transaction.objects.using(self.context.using)

    def _with_relations(self):
        return self._objects.prefetch_related(
            "line_items__product", "status_history"
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    def create(
        self,
        kind: str,
        counterparty_id: str,
        lines: List[Dict[str, Any]],
        total_amount: Decimal,
        notes: str = "",
    ) -> Transaction:
        """Create a pending transaction with its items atomically."""
        using = self.context.using
        with unit_of_work(self.context):
            txn = Transaction(
                kind=kind,
                counterparty_id=counterparty_id,
                status=TransactionStatus.PENDING,
                total_amount=total_amount,
                notes=notes,
            )
            txn.save(using=using)

            for position, line in enumerate(lines):
                LineItem(
                    transaction=txn,
                    position=position,
                    product=line["product"],
                    product_name=line.get("product_name", ""),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    is_new_product=line.get("is_new_product", False),
                ).save(using=using)

            self.add_history(
                txn.id,
                TransactionStatus.PENDING,
                actor_id=counterparty_id,
                notes=f"{kind} order created",
            )

        logger.info(
            "transaction.created",
            transaction_id=str(txn.id),
            reference=txn.reference,
            kind=kind,
            item_count=len(lines),
        )
        return txn

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @guarded
    def get_by_id(self, id: Any) -> Optional[Transaction]:
        """Retrieve a transaction with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        pk = as_uuid(id)
        if pk is None:
            return None
        return self._with_relations().filter(pk=pk).first()

    @guarded
    def get_of_kind(self, id: Any, kind: str) -> Optional[Transaction]:
        pk = as_uuid(id)
        if pk is None:
            return None
        return self._with_relations().filter(pk=pk, kind=kind).first()

    @guarded
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Transaction]:
        """List transactions with optional filters and eager-loaded relations.

        Supported filter keys:
        - ``kind``
        - ``status``
        - ``counterparty_id``
        """
        queryset = self._with_relations()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @guarded
    def save(self, entity: Transaction) -> Transaction:
        """Persist a transaction's own fields (not its status)."""
        entity.save(using=self.context.using)
        logger.info("transaction.saved", transaction_id=str(entity.id))
        return entity

    @guarded
    def delete(self, id: Any) -> bool:
        pk = as_uuid(id)
        if pk is None:
            return False
        deleted, _ = self._objects.filter(pk=pk).delete()
        if deleted:
            logger.info("transaction.deleted", transaction_id=str(pk))
        return bool(deleted)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @guarded
    def compare_and_swap_status(
        self,
        id: Any,
        expected: str,
        new: str,
        actor_id: str = "",
    ) -> bool:
        """``UPDATE transactions SET status = new WHERE id = ? AND status = expected``."""
        pk = as_uuid(id)
        if pk is None:
            return False
        now = timezone.now()
        changed = self._objects.filter(pk=pk, status=expected).update(
            status=new,
            decided_by=actor_id,
            decided_at=now,
            updated_at=now,
        )
        if not changed:
            logger.info(
                "transaction.status_swap_lost",
                transaction_id=str(pk),
                expected=expected,
                new=new,
            )
        return bool(changed)

    @guarded
    def add_history(
        self,
        transaction_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        actor_id: str = "",
        notes: str = "",
    ) -> TransactionStatusHistory:
        """Record a status change in the transaction's audit trail."""
        history = TransactionStatusHistory(
            transaction_id=transaction_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor_id,
            notes=notes,
        )
        history.save(using=self.context.using)

        logger.info(
            "transaction.history_added",
            transaction_id=str(transaction_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history
