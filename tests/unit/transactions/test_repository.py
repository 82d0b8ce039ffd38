"""Unit tests for TransactionDjangoRepository."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from modules.transactions.constants import TransactionKind, TransactionStatus
from modules.transactions.models import Transaction
from modules.transactions.repositories import (
    ITransactionRepository,
    TransactionDjangoRepository,
)

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return TransactionDjangoRepository()


@pytest.fixture()
def order(repo, make_product):
    first = make_product(price=Decimal("2.00"))
    second = make_product(price=Decimal("5.00"))
    return repo.create(
        kind=TransactionKind.SALE,
        counterparty_id="customer-1",
        lines=[
            {"product": first, "product_name": first.name, "quantity": 2, "unit_price": first.price},
            {"product": second, "product_name": second.name, "quantity": 1, "unit_price": second.price},
        ],
        total_amount=Decimal("9.00"),
    )


class TestCreate:
    def test_implements_interface(self, repo):
        assert isinstance(repo, ITransactionRepository)

    def test_aggregate_persisted(self, repo, order):
        fetched = repo.get_by_id(order.id)
        assert fetched.status == TransactionStatus.PENDING
        assert fetched.total_amount == Decimal("9.00")
        assert [i.position for i in fetched.line_items.all()] == [0, 1]
        assert sum(i.subtotal for i in fetched.line_items.all()) == fetched.total_amount

    def test_creation_history_row(self, repo, order):
        [history] = repo.get_by_id(order.id).status_history.all()
        assert history.old_status is None
        assert history.new_status == TransactionStatus.PENDING
        assert history.actor_id == "customer-1"


class TestReads:
    def test_get_of_kind(self, repo, order):
        assert repo.get_of_kind(order.id, TransactionKind.SALE) == order
        assert repo.get_of_kind(order.id, TransactionKind.PURCHASE) is None

    @pytest.mark.parametrize("value", ["bad", None])
    def test_invalid_ids(self, repo, value):
        assert repo.get_by_id(value) is None
        assert repo.get_of_kind(value, TransactionKind.SALE) is None

    def test_list_filters(self, repo, order):
        assert repo.list({"counterparty_id": "customer-1"}) == [order]
        assert repo.list({"kind": TransactionKind.PURCHASE}) == []


class TestCompareAndSwap:
    def test_first_swap_wins(self, repo, order):
        assert repo.compare_and_swap_status(
            order.id, TransactionStatus.PENDING, TransactionStatus.PURCHASED, actor_id="c"
        )
        order.refresh_from_db()
        assert order.status == TransactionStatus.PURCHASED
        assert order.decided_by == "c"
        assert order.decided_at is not None

    def test_second_swap_loses(self, repo, order):
        repo.compare_and_swap_status(order.id, TransactionStatus.PENDING, TransactionStatus.CANCELLED)
        assert not repo.compare_and_swap_status(
            order.id, TransactionStatus.PENDING, TransactionStatus.PURCHASED
        )
        order.refresh_from_db()
        assert order.status == TransactionStatus.CANCELLED

    def test_unknown_order(self, repo):
        assert not repo.compare_and_swap_status(
            uuid.uuid4(), TransactionStatus.PENDING, TransactionStatus.CANCELLED
        )

    def test_delete(self, repo, order):
        assert repo.delete(order.id) is True
        assert not Transaction.objects.filter(pk=order.pk).exists()
