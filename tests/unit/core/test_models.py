"""Unit tests for BaseModel, exercised through the concrete Product model."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from modules.products.models import Product

pytestmark = pytest.mark.unit


class TestBaseModel:
    """Tests for UUIDv7 PK and timestamp behaviour."""

    def test_id_is_uuid_version_7(self, make_product):
        product = make_product()
        assert isinstance(product.id, uuid.UUID)
        assert product.id.version == 7

    def test_ids_are_time_ordered(self, make_product):
        """UUIDv7 encodes timestamp, so sequential creates yield ordered IDs."""
        first = make_product()
        second = make_product()
        assert str(first.id) < str(second.id)

    def test_created_at_does_not_change_on_save(self, make_product):
        product = make_product()
        created = product.created_at
        product.description = "changed"
        product.save()
        product.refresh_from_db()
        assert product.created_at == created

    def test_save_with_update_fields_includes_updated_at(self, make_product):
        """The save() guard must inject updated_at into update_fields."""
        now = timezone.now()
        with freeze_time(now):
            product = make_product()
        with freeze_time(now + timedelta(minutes=5)):
            product.description = "modified"
            product.save(update_fields=["description"])
        product.refresh_from_db()
        assert product.updated_at == now + timedelta(minutes=5)

    def test_id_is_not_editable(self):
        assert Product._meta.get_field("id").editable is False
