from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from modules.core.identity import Principal, Role
from modules.core.storage import StorageContext
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductLedger
from modules.transactions.services import build_transaction_service


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user(django_user_model):
    """Create a Django user acting under ``role`` (group membership)."""

    def _make(username: str, role: str | None = None, **extra):
        user = django_user_model.objects.create_user(
            username=username, password="testpass123", **extra
        )
        if role:
            group, _ = Group.objects.get_or_create(name=role)
            user.groups.add(group)
        return user

    return _make


@pytest.fixture()
def customer_user(make_user):
    return make_user("customer", Role.CUSTOMER)


@pytest.fixture()
def other_customer_user(make_user):
    return make_user("other-customer", Role.CUSTOMER)


@pytest.fixture()
def supplier_user(make_user):
    return make_user("supplier", Role.SUPPLIER)


@pytest.fixture()
def manager_user(make_user):
    return make_user("manager", Role.MANAGER)


@pytest.fixture()
def admin_user(make_user):
    return make_user("admin", Role.ADMIN)


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as ``user``."""

    def _client(user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture()
def customer():
    return Principal(id="customer-1", role=Role.CUSTOMER)


@pytest.fixture()
def other_customer():
    return Principal(id="customer-2", role=Role.CUSTOMER)


@pytest.fixture()
def supplier():
    return Principal(id="supplier-1", role=Role.SUPPLIER)


@pytest.fixture()
def manager():
    return Principal(id="manager-1", role=Role.MANAGER)


# ---------------------------------------------------------------------------
# Catalog and engine
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    """Create a product directly through the ORM."""
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        defaults = {
            "name": f"product {counter['n']}",
            "category": "general",
            "description": "test product",
            "price": Decimal("10.00"),
            "stock": 10,
            "min_stock_level": 0,
            "status": ProductStatus.AVAILABLE,
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def storage_context():
    return StorageContext()


@pytest.fixture()
def ledger(storage_context):
    return ProductLedger(ProductDjangoRepository(storage_context))


@pytest.fixture()
def service(storage_context):
    return build_transaction_service(storage_context)
