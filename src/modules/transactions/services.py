"""Approval/Confirmation Gateway (Use Cases).

The boundary of the inventory transaction engine.  Maps a caller's
identity, role and decision token onto Order Builder and State Machine
operations and shapes their results for the API layer.

Decision tokens are case-insensitive and surrounding whitespace is
ignored; an unknown token raises ``InvalidDecision`` before any storage
access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Type

import structlog
from django.db import models

from modules.core.storage import StorageContext
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductLedger
from modules.transactions.builders import OrderBuilder
from modules.transactions.constants import PurchaseDecision, SalesDecision
from modules.transactions.dtos import OrderCreatedDTO, TransitionResultDTO
from modules.transactions.exceptions import InvalidDecision, OrderNotFound
from modules.transactions.repositories.django_repository import (
    TransactionDjangoRepository,
)
from modules.transactions.state_machine import TransactionStateMachine

if TYPE_CHECKING:
    from modules.core.identity import Principal
    from modules.products.models import Product
    from modules.transactions.models import Transaction
    from modules.transactions.repositories.interfaces import ITransactionRepository

logger = structlog.get_logger(__name__)


def _parse_decision(decision: Any, choices: Type[models.TextChoices]) -> str:
    token = decision.strip().lower() if isinstance(decision, str) else None
    if token not in choices.values:
        allowed = "/".join(choices.values)
        raise InvalidDecision(f"Decision must be one of {allowed}, got {decision!r}.")
    return token


class TransactionService:
    """Application service for the transaction engine's boundary operations.

    Receives its collaborators via constructor injection (DIP); use
    ``build_transaction_service`` for the Django-backed wiring.
    """

    def __init__(
        self,
        builder: OrderBuilder,
        state_machine: TransactionStateMachine,
        ledger: ProductLedger,
        repository: ITransactionRepository,
    ) -> None:
        self._builder = builder
        self._state_machine = state_machine
        self._ledger = ledger
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_sales_order(
        self, customer_id: str, line_items: Iterable[Any]
    ) -> Dict[str, Any]:
        order = self._builder.build_sales_order(customer_id, line_items)
        return OrderCreatedDTO(
            order_id=order.id,
            reference=order.reference,
            status=order.status,
            total_amount=order.total_amount,
        ).model_dump()

    def confirm_sales_order(
        self, order_id: Any, principal: Principal, decision: Any
    ) -> Dict[str, Any]:
        """Apply the customer's ``yes``/``no`` to a pending sales order.

        Raises:
            InvalidDecision: the token is neither ``yes`` nor ``no``.
        """
        token = _parse_decision(decision, SalesDecision)
        order = self._state_machine.confirm_sale(
            order_id, principal, accept=token == SalesDecision.YES
        )
        return TransitionResultDTO(order_id=order.id, status=order.status).model_dump()

    def create_purchase_order(
        self, supplier_id: str, line_items: Iterable[Any]
    ) -> Dict[str, Any]:
        order = self._builder.build_purchase_order(supplier_id, line_items)
        return OrderCreatedDTO(
            order_id=order.id,
            reference=order.reference,
            status=order.status,
            total_amount=order.total_amount,
        ).model_dump()

    def decide_purchase_order(
        self,
        transaction_id: Any,
        principal: Principal,
        decision: Any,
        min_stock_level: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Apply an administrator's ``approve``/``reject`` to a purchase order.

        ``min_stock_level`` is only used on approval.

        Raises:
            InvalidDecision: unknown token or a negative ``min_stock_level``.
        """
        token = _parse_decision(decision, PurchaseDecision)
        if min_stock_level is not None and min_stock_level < 0:
            raise InvalidDecision("min_stock_level cannot be negative.")

        if token == PurchaseDecision.APPROVE:
            order = self._state_machine.approve_purchase(
                transaction_id, principal, min_stock_level=min_stock_level
            )
        else:
            order = self._state_machine.reject_purchase(transaction_id, principal)
        return TransitionResultDTO(order_id=order.id, status=order.status).model_dump()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_low_stock_products(self) -> List[Product]:
        return self._ledger.get_low_stock_products()

    def get_transaction(
        self, transaction_id: Any, principal: Optional[Principal] = None
    ) -> Transaction:
        """Retrieve a single transaction.

        Non-administrative callers only see their own transactions; any
        other id is reported as not found.

        Raises:
            OrderNotFound: if the transaction does not exist or is not visible.
        """
        order = self._repo.get_by_id(transaction_id)
        if not order or not self._can_see(order, principal):
            raise OrderNotFound(f"Transaction {transaction_id} not found.")
        return order

    def list_transactions(
        self,
        filters: Optional[Dict[str, Any]] = None,
        principal: Optional[Principal] = None,
    ) -> List[Transaction]:
        """Return transactions, optionally filtered and scoped to the caller."""
        filters = dict(filters or {})
        if principal is not None and not principal.is_administrative:
            filters["counterparty_id"] = principal.id
        return self._repo.list(filters)

    @staticmethod
    def _can_see(order: Transaction, principal: Optional[Principal]) -> bool:
        if principal is None or principal.is_administrative:
            return True
        return order.counterparty_id == principal.id


def build_transaction_service(
    context: Optional[StorageContext] = None,
) -> TransactionService:
    """Wire the service with Django ORM repositories sharing one context."""
    context = context or StorageContext.from_settings()
    ledger = ProductLedger(ProductDjangoRepository(context))
    repository = TransactionDjangoRepository(context)
    return TransactionService(
        builder=OrderBuilder(ledger, repository),
        state_machine=TransactionStateMachine(ledger, repository),
        ledger=ledger,
        repository=repository,
    )
