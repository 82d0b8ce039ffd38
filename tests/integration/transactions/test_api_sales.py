"""Integration tests for sales orders over the API.

POST /api/v1/transactions/sales-orders/
POST /api/v1/transactions/{id}/confirm/
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from modules.products.models import Product, ProductStatus
from modules.transactions.constants import TransactionStatus
from modules.transactions.models import Transaction

pytestmark = pytest.mark.integration

SALES_URL = "/api/v1/transactions/sales-orders/"


def confirm_url(order_id) -> str:
    return f"/api/v1/transactions/{order_id}/confirm/"


@pytest.fixture()
def customer_client(client_for, customer_user):
    return client_for(customer_user)


@pytest.fixture()
def keyboard(make_product):
    return make_product(name="keyboard", price=Decimal("50.00"), stock=10, min_stock_level=4)


@pytest.fixture()
def placed(customer_client, keyboard):
    response = customer_client.post(
        SALES_URL,
        {"items": [{"product_id": str(keyboard.id), "quantity": 2}]},
        format="json",
    )
    assert response.status_code == 201
    return response.json()


class TestCreateSalesOrder:
    def test_created_pending(self, placed, customer_user, keyboard):
        assert placed["status"] == TransactionStatus.PENDING
        assert placed["reference"].startswith("SO-")
        assert Decimal(str(placed["total_amount"])) == Decimal("100.00")

        order = Transaction.objects.get(pk=placed["order_id"])
        assert order.counterparty_id == str(customer_user.pk)
        keyboard.refresh_from_db()
        assert keyboard.stock == 10

    def test_requires_authentication(self, api_client, keyboard):
        response = api_client.post(
            SALES_URL, {"items": [{"product_id": str(keyboard.id), "quantity": 1}]}, format="json"
        )
        assert response.status_code == 401

    def test_supplier_cannot_buy(self, client_for, supplier_user, keyboard):
        response = client_for(supplier_user).post(
            SALES_URL, {"items": [{"product_id": str(keyboard.id), "quantity": 1}]}, format="json"
        )
        assert response.status_code == 403

    def test_quantity_exceeds_available(self, customer_client, keyboard):
        response = customer_client.post(
            SALES_URL, {"items": [{"product_id": str(keyboard.id), "quantity": 7}]}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["available"] == 6
        assert not Transaction.objects.exists()

    def test_unknown_product(self, customer_client):
        response = customer_client.post(
            SALES_URL, {"items": [{"product_id": str(uuid.uuid4()), "quantity": 1}]}, format="json"
        )
        assert response.status_code == 404

    def test_unavailable_product(self, customer_client, make_product):
        hidden = make_product(status=ProductStatus.NOT_AVAILABLE)
        response = customer_client.post(
            SALES_URL, {"items": [{"product_id": str(hidden.id), "quantity": 1}]}, format="json"
        )
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"items": []},
            {"items": [{"quantity": 1}]},
            {"items": [{"product_id": "not-a-uuid", "quantity": 1}]},
            {"items": "nope"},
            {},
        ],
    )
    def test_invalid_items(self, customer_client, body):
        response = customer_client.post(SALES_URL, body, format="json")
        assert response.status_code == 400


class TestConfirmSalesOrder:
    def test_yes_purchases_and_takes_stock(self, customer_client, placed, keyboard):
        response = customer_client.post(
            confirm_url(placed["order_id"]), {"decision": " YES "}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["status"] == TransactionStatus.PURCHASED
        keyboard.refresh_from_db()
        assert keyboard.stock == 8

    def test_no_cancels(self, customer_client, placed, keyboard):
        response = customer_client.post(
            confirm_url(placed["order_id"]), {"decision": "no"}, format="json"
        )
        assert response.json()["status"] == TransactionStatus.CANCELLED
        keyboard.refresh_from_db()
        assert keyboard.stock == 10

    def test_second_decision_conflicts(self, customer_client, placed):
        url = confirm_url(placed["order_id"])
        customer_client.post(url, {"decision": "yes"}, format="json")
        response = customer_client.post(url, {"decision": "no"}, format="json")
        assert response.status_code == 409

    def test_other_customer_forbidden(self, client_for, other_customer_user, placed):
        response = client_for(other_customer_user).post(
            confirm_url(placed["order_id"]), {"decision": "yes"}, format="json"
        )
        assert response.status_code == 403

    def test_invalid_decision(self, customer_client, placed):
        response = customer_client.post(
            confirm_url(placed["order_id"]), {"decision": "maybe"}, format="json"
        )
        assert response.status_code == 400
        order = Transaction.objects.get(pk=placed["order_id"])
        assert order.status == TransactionStatus.PENDING

    def test_unknown_order(self, customer_client):
        response = customer_client.post(
            confirm_url(uuid.uuid4()), {"decision": "yes"}, format="json"
        )
        assert response.status_code == 404

    def test_stock_drained_after_build(self, customer_client, placed, keyboard):
        Product.objects.filter(pk=keyboard.pk).update(stock=1)
        response = customer_client.post(
            confirm_url(placed["order_id"]), {"decision": "yes"}, format="json"
        )
        assert response.status_code == 409
        keyboard.refresh_from_db()
        assert keyboard.stock == 1
        assert Transaction.objects.get(pk=placed["order_id"]).status == TransactionStatus.PENDING
