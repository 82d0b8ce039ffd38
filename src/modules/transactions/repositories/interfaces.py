"""Transaction repository interface.

Extends ``IRepository[Transaction]`` with what the Order Builder and the
State Machine need: creation of the whole aggregate (transaction + line
items + first history row), the compare-and-swap status write, and
history tracking.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.transactions.models import Transaction, TransactionStatusHistory


class ITransactionRepository(IRepository["Transaction"]):
    """Repository contract for the Transaction aggregate root.

    The aggregate includes LineItem children and TransactionStatusHistory
    records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(
        self,
        kind: str,
        counterparty_id: str,
        lines: List[Dict[str, Any]],
        total_amount: Decimal,
        notes: str = "",
    ) -> Transaction:
        """Create a pending transaction with its line items.

        Each entry of ``lines`` carries ``product``, ``product_name``,
        ``quantity``, ``unit_price`` and optionally ``is_new_product``.
        """

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Transaction]:
        """Retrieve a transaction with prefetched items and history."""

    @abstractmethod
    def get_of_kind(self, id: Any, kind: str) -> Optional[Transaction]:
        """Retrieve a transaction only if it is of the given kind."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Transaction]:
        """List transactions with optional filters."""

    @abstractmethod
    def compare_and_swap_status(
        self,
        id: Any,
        expected: str,
        new: str,
        actor_id: str = "",
    ) -> bool:
        """Set ``status = new`` only where it is still ``expected``.

        Returns ``True`` when this call won the write.
        """

    @abstractmethod
    def add_history(
        self,
        transaction_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        actor_id: str = "",
        notes: str = "",
    ) -> TransactionStatusHistory:
        """Record a status change in the transaction's audit trail."""
