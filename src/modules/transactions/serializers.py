"""Transaction DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Line items are passed through untouched: the Order Builder coerces them
into the Pydantic line-item variants in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.transactions.models import LineItem, Transaction, TransactionStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the envelope of a sales or purchase order request."""

    items = serializers.ListField(child=serializers.DictField())


class SalesDecisionSerializer(serializers.Serializer):
    decision = serializers.CharField(trim_whitespace=True)


class PurchaseDecisionSerializer(serializers.Serializer):
    decision = serializers.CharField(trim_whitespace=True)
    min_stock_level = serializers.IntegerField(
        required=False, allow_null=True, min_value=0, default=None
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class LineItemSerializer(serializers.ModelSerializer):
    """Read serializer for line items with the price snapshot."""

    class Meta:
        model = LineItem
        fields = [
            "id",
            "position",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
            "is_new_product",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for transaction status history records."""

    class Meta:
        model = TransactionStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "actor_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """Read serializer for transactions with nested items and history."""

    line_items = LineItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "reference",
            "kind",
            "counterparty_id",
            "status",
            "total_amount",
            "decided_by",
            "decided_at",
            "notes",
            "created_at",
            "updated_at",
            "line_items",
            "status_history",
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for transaction lists (no nested relations)."""

    class Meta:
        model = Transaction
        fields = [
            "id",
            "reference",
            "kind",
            "counterparty_id",
            "status",
            "total_amount",
            "created_at",
        ]
        read_only_fields = fields
