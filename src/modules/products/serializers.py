"""Product DRF serializers for API output.

The serializer operates at the Interface layer (API Views).
Input is validated by the Pydantic DTOs in ``dtos.py`` before it
reaches the Product Ledger.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    """Full product representation for admins, managers and suppliers."""

    purchasable_quantity = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "category",
            "description",
            "price",
            "stock",
            "min_stock_level",
            "purchasable_quantity",
            "is_low_stock",
            "status",
            "supplied_by",
            "created_by",
            "last_updated_by",
            "approved_by",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CustomerProductSerializer(serializers.ModelSerializer):
    """Reduced projection shown to customers: no stock or audit fields."""

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "category",
            "description",
            "price",
            "status",
        ]
        read_only_fields = fields
