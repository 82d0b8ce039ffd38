from __future__ import annotations

import pytest

from modules.products.serializers import CustomerProductSerializer, ProductSerializer

pytestmark = pytest.mark.unit


class TestProductSerializers:
    def test_full_projection(self, make_product):
        product = make_product(stock=10, min_stock_level=4)
        data = ProductSerializer(product).data
        assert data["stock"] == 10
        assert data["purchasable_quantity"] == 6
        assert data["is_low_stock"] is False

    def test_customer_projection_hides_stock_and_audit(self, make_product):
        data = CustomerProductSerializer(make_product()).data
        assert set(data) == {"id", "name", "category", "description", "price", "status"}
