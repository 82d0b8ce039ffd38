"""Transaction State Machine.

Owns the lifecycle of a transaction::

    sale:      pending --confirm(yes)--> purchased   (stock -= q per line)
               pending --confirm(no)---> cancelled
    purchase:  pending --approve-------> approved    (ledger.approve per line)
               pending --reject--------> rejected

Every transition is all-or-nothing.  The compare-and-swap on ``status``
and every stock effect run inside one unit of work, so a failure on any
line (e.g. ``InsufficientStock``) rolls back the status change and the
effects already applied to earlier lines.  Losing the swap to a
concurrent decision raises ``OrderNotPending``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from modules.core.storage import unit_of_work
from modules.products.exceptions import ProductNotFound
from modules.transactions.constants import TransactionKind, TransactionStatus
from modules.transactions.exceptions import Forbidden, OrderNotFound, OrderNotPending

if TYPE_CHECKING:
    from modules.core.identity import Principal
    from modules.products.services import ProductLedger
    from modules.transactions.models import LineItem, Transaction
    from modules.transactions.repositories.interfaces import ITransactionRepository

logger = structlog.get_logger(__name__)


class TransactionStateMachine:
    """Applies decisions to pending transactions."""

    def __init__(
        self,
        ledger: ProductLedger,
        repository: ITransactionRepository,
    ) -> None:
        self._ledger = ledger
        self._repo = repository
        self._context = repository.context

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def confirm_sale(self, order_id: Any, principal: Principal, accept: bool) -> Transaction:
        """Finalise (``accept=True``) or cancel a pending sales order.

        Only the customer who placed the order may confirm it.

        Raises:
            OrderNotFound: no sales order with this id.
            Forbidden: the caller is not the order's customer.
            OrderNotPending: the order was already decided.
            InsufficientStock: a line no longer fits the current stock.
        """
        if not accept:
            return self._transition(
                order_id,
                TransactionKind.SALE,
                principal,
                TransactionStatus.CANCELLED,
                notes="Cancelled by customer",
            )

        def take_stock(line: LineItem) -> None:
            self._ledger.adjust_stock(self._product_id(line), -line.quantity)

        return self._transition(
            order_id,
            TransactionKind.SALE,
            principal,
            TransactionStatus.PURCHASED,
            effect=take_stock,
            notes="Confirmed by customer",
        )

    def approve_purchase(
        self,
        order_id: Any,
        principal: Principal,
        min_stock_level: Optional[int] = None,
    ) -> Transaction:
        """Approve a pending purchase order and book its stock.

        Placeholders created by this order become ``available`` with
        stock equal to the approved quantity; existing products have the
        quantity added.  The supplier's unit price overrides the catalog
        price when it is positive and different.

        Raises:
            OrderNotFound: no purchase order with this id.
            Forbidden: the caller is not an admin or manager.
            OrderNotPending: the order was already decided.
        """

        def book_stock(line: LineItem) -> None:
            self._ledger.approve(
                self._product_id(line),
                approver_id=principal.id,
                quantity=line.quantity,
                min_stock_level=min_stock_level,
                price_override=line.unit_price,
                replace_stock=line.is_new_product,
            )

        return self._transition(
            order_id,
            TransactionKind.PURCHASE,
            principal,
            TransactionStatus.APPROVED,
            effect=book_stock,
            notes="Approved",
        )

    def reject_purchase(self, order_id: Any, principal: Principal) -> Transaction:
        """Reject a pending purchase order.  No stock changes.

        Raises:
            OrderNotFound: no purchase order with this id.
            Forbidden: the caller is not an admin or manager.
            OrderNotPending: the order was already decided.
        """
        return self._transition(
            order_id,
            TransactionKind.PURCHASE,
            principal,
            TransactionStatus.REJECTED,
            notes="Rejected",
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transition(
        self,
        order_id: Any,
        kind: str,
        principal: Principal,
        target: str,
        effect: Optional[Callable[[LineItem], None]] = None,
        notes: str = "",
    ) -> Transaction:
        log = logger.bind(
            transaction_id=str(order_id),
            kind=kind,
            actor_id=principal.id,
            new_status=target,
        )

        with unit_of_work(self._context):
            order = self._repo.get_of_kind(order_id, kind)
            if not order:
                raise OrderNotFound(f"{kind.capitalize()} order {order_id} not found.")

            self._authorize(order, principal)

            if not order.can_transition_to(target):
                log.warning("transaction.not_pending", current_status=order.status)
                raise OrderNotPending(
                    f"Order {order.reference} is already {order.status}."
                )

            if not self._repo.compare_and_swap_status(
                order.id, TransactionStatus.PENDING, target, actor_id=principal.id
            ):
                log.warning("transaction.decision_conflict")
                raise OrderNotPending(
                    f"Order {order.reference} was decided concurrently."
                )

            if effect is not None:
                lines = sorted(
                    order.line_items.all(), key=lambda item: str(item.product_id)
                )
                for line in lines:
                    effect(line)

            self._repo.add_history(
                order.id,
                target,
                old_status=TransactionStatus.PENDING,
                actor_id=principal.id,
                notes=notes,
            )

        log.info("transaction.status_changed", reference=order.reference)
        return self._repo.get_by_id(order.id) or order

    def _authorize(self, order: Transaction, principal: Principal) -> None:
        """Check the caller may decide this order.

        Sales orders are decided by their own customer; purchase orders by
        an administrative role.
        """
        if order.kind == TransactionKind.SALE:
            allowed = principal.id == order.counterparty_id
        else:
            allowed = principal.is_administrative

        if not allowed:
            logger.warning(
                "transaction.forbidden",
                transaction_id=str(order.id),
                kind=order.kind,
                actor_id=principal.id,
                role=principal.role,
            )
            raise Forbidden(
                f"Caller {principal.id} may not decide order {order.reference}."
            )

    @staticmethod
    def _product_id(line: LineItem) -> Any:
        if line.product_id is None:
            raise ProductNotFound(
                f"Product '{line.product_name}' of line {line.position} no longer exists."
            )
        return line.product_id
