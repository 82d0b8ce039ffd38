"""Integration tests for the product catalog API."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from modules.products.models import Product, ProductStatus
from modules.transactions.constants import TransactionStatus

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"


def detail_url(product_id) -> str:
    return f"{PRODUCTS_URL}{product_id}/"


@pytest.fixture()
def catalog(make_product):
    return {
        "lamp": make_product(name="lamp", category="lighting", stock=2, min_stock_level=3),
        "desk": make_product(name="desk", category="furniture", stock=8, min_stock_level=2),
        "hidden": make_product(
            name="prototype", category="lighting", status=ProductStatus.NOT_AVAILABLE
        ),
    }


@pytest.fixture()
def manager_client(client_for, manager_user):
    return client_for(manager_user)


@pytest.fixture()
def customer_client(client_for, customer_user):
    return client_for(customer_user)


class TestBrowse:
    def test_customer_sees_available_only_without_stock(self, customer_client, catalog):
        response = customer_client.get(PRODUCTS_URL)
        assert response.status_code == 200
        rows = response.json()["results"]
        assert {row["name"] for row in rows} == {"lamp", "desk"}
        assert "stock" not in rows[0]
        assert "supplied_by" not in rows[0]

    def test_manager_sees_full_catalog(self, manager_client, catalog):
        rows = manager_client.get(PRODUCTS_URL).json()["results"]
        assert len(rows) == 3
        desk = next(row for row in rows if row["name"] == "desk")
        assert desk["stock"] == 8
        assert desk["purchasable_quantity"] == 6
        assert desk["is_low_stock"] is False

    def test_customer_cannot_read_unavailable_product(self, customer_client, catalog):
        response = customer_client.get(detail_url(catalog["hidden"].id))
        assert response.status_code == 404

    def test_retrieve(self, manager_client, catalog):
        response = manager_client.get(detail_url(catalog["hidden"].id))
        assert response.status_code == 200
        assert response.json()["status"] == ProductStatus.NOT_AVAILABLE

    def test_retrieve_unknown(self, manager_client):
        assert manager_client.get(detail_url(uuid.uuid4())).status_code == 404

    def test_filter_by_category(self, manager_client, catalog):
        rows = manager_client.get(PRODUCTS_URL, {"category": "lighting"}).json()["results"]
        assert {row["name"] for row in rows} == {"lamp", "prototype"}

    def test_categories(self, customer_client, catalog):
        response = customer_client.get(f"{PRODUCTS_URL}categories/")
        assert response.json() == {"categories": ["furniture", "lighting"]}

    def test_low_stock_for_managers(self, manager_client, catalog):
        data = manager_client.get(f"{PRODUCTS_URL}low-stock/").json()
        assert data["count"] == 1
        assert data["results"][0]["name"] == "lamp"

    def test_low_stock_hidden_from_customers(self, customer_client, catalog):
        assert customer_client.get(f"{PRODUCTS_URL}low-stock/").status_code == 403

    def test_requires_authentication(self, api_client):
        assert api_client.get(PRODUCTS_URL).status_code == 401


class TestCatalogWrites:
    def test_create(self, client_for, admin_user):
        response = client_for(admin_user).post(
            PRODUCTS_URL,
            {"name": "  Floor  Lamp ", "category": "lighting", "price": "59.90", "stock": 5},
            format="json",
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "floor lamp"
        assert data["status"] == ProductStatus.AVAILABLE
        assert data["created_by"] == str(admin_user.pk)

    def test_create_forbidden_for_supplier(self, client_for, supplier_user):
        response = client_for(supplier_user).post(
            PRODUCTS_URL, {"name": "x", "category": "y", "price": "1.00"}, format="json"
        )
        assert response.status_code == 403

    def test_create_duplicate(self, manager_client, catalog):
        response = manager_client.post(
            PRODUCTS_URL, {"name": "LAMP", "category": "lighting", "price": "5.00"}, format="json"
        )
        assert response.status_code == 409

    def test_create_invalid_price(self, manager_client):
        response = manager_client.post(
            PRODUCTS_URL, {"name": "free", "category": "misc", "price": "0"}, format="json"
        )
        assert response.status_code == 400

    def test_patch_price(self, manager_client, catalog):
        response = manager_client.patch(
            detail_url(catalog["desk"].id), {"price": "12.50"}, format="json"
        )
        assert response.status_code == 200
        catalog["desk"].refresh_from_db()
        assert catalog["desk"].price == Decimal("12.50")

    def test_patch_stock_rejected(self, manager_client, catalog):
        response = manager_client.patch(detail_url(catalog["desk"].id), {"stock": 99}, format="json")
        assert response.status_code == 400
        catalog["desk"].refresh_from_db()
        assert catalog["desk"].stock == 8

    def test_patch_status_of_pending_placeholder(self, manager_client, service, supplier):
        created = service.create_purchase_order(
            supplier.id,
            [
                {
                    "kind": "new",
                    "name": "Desk Fan",
                    "category": "appliances",
                    "price": "40.00",
                    "stock": 6,
                    "description": "three speeds",
                }
            ],
        )
        placeholder = Product.objects.get(name="desk fan")
        response = manager_client.patch(
            detail_url(placeholder.id), {"status": "available"}, format="json"
        )
        assert response.status_code == 409
        placeholder.refresh_from_db()
        assert placeholder.status == ProductStatus.NOT_AVAILABLE
        assert created["status"] == TransactionStatus.PENDING

    def test_patch_unknown(self, manager_client):
        response = manager_client.patch(detail_url(uuid.uuid4()), {"price": "1"}, format="json")
        assert response.status_code == 404

    def test_delete(self, manager_client, catalog):
        response = manager_client.delete(detail_url(catalog["desk"].id))
        assert response.status_code == 204
        assert not Product.objects.filter(pk=catalog["desk"].pk).exists()

    def test_delete_referenced_by_pending_order(self, manager_client, service, customer, catalog):
        desk = catalog["desk"]
        service.create_sales_order(customer.id, [{"product_id": desk.id, "quantity": 1}])
        response = manager_client.delete(detail_url(desk.id))
        assert response.status_code == 409
        assert Product.objects.filter(pk=desk.pk).exists()

    def test_delete_after_order_decided(self, manager_client, service, customer, catalog):
        desk = catalog["desk"]
        created = service.create_sales_order(customer.id, [{"product_id": desk.id, "quantity": 1}])
        result = service.confirm_sales_order(created["order_id"], customer, "no")
        assert result["status"] == TransactionStatus.CANCELLED
        assert manager_client.delete(detail_url(desk.id)).status_code == 204
