"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
(or ``0``) instead of raising; the ledger decides how to translate a
missing entity into a domain error.

Every query is routed to ``context.using``; driver errors surface as
``StorageUnavailable``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db.models import F
from django.utils import timezone

from modules.core.storage import StorageContext, as_uuid, guarded
from modules.products.models import Product, normalize_name
from modules.products.repositories.interfaces import IProductRepository
from modules.transactions.constants import TransactionStatus

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def __init__(self, context: Optional[StorageContext] = None) -> None:
        self.context = context or StorageContext()

    @property
    def _objects(self):
        return Product.objects.using(self.context.using)

    @guarded
    def get_by_id(self, id: Any) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        pk = as_uuid(id)
        if pk is None:
            return None
        return self._objects.filter(pk=pk).first()

    @guarded
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "available"}
            {"category": "beverages"}
        """
        queryset = self._objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @guarded
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product's catalog fields."""
        entity.save(using=self.context.using)
        logger.info("product.saved", product_id=str(entity.id), name=entity.name)
        return entity

    @guarded
    def delete(self, id: Any) -> bool:
        """Hard-delete a product by ID.

        Returns ``True`` if the product was found and removed.
        """
        pk = as_uuid(id)
        if pk is None:
            return False
        deleted, _ = self._objects.filter(pk=pk).delete()
        if deleted:
            logger.info("product.deleted", product_id=str(pk))
        return bool(deleted)

    @guarded
    def get_by_name(self, name: str) -> Optional[Product]:
        return self._objects.filter(name=normalize_name(name)).first()

    @guarded
    def exists(self, id: Any) -> bool:
        pk = as_uuid(id)
        return pk is not None and self._objects.filter(pk=pk).exists()

    @guarded
    def apply_stock_delta(self, id: Any, delta: int) -> int:
        """Conditional ``UPDATE products SET stock = stock + delta``.

        The ``stock >= -delta`` guard is evaluated by the database in the
        same statement, so two concurrent decrements can never both pass
        it when only one fits.
        """
        pk = as_uuid(id)
        if pk is None:
            return 0
        queryset = self._objects.filter(pk=pk)
        if delta < 0:
            queryset = queryset.filter(stock__gte=-delta)
        return queryset.update(stock=F("stock") + delta, updated_at=timezone.now())

    @guarded
    def low_stock(self) -> List[Product]:
        return list(
            self._objects.filter(stock__lte=F("min_stock_level")).order_by("stock", "name")
        )

    @guarded
    def categories(self) -> List[str]:
        return list(
            self._objects.order_by("category")
            .values_list("category", flat=True)
            .distinct()
        )

    @guarded
    def has_pending_references(self, id: Any) -> bool:
        pk = as_uuid(id)
        if pk is None:
            return False
        return self._objects.filter(
            pk=pk, line_items__transaction__status=TransactionStatus.PENDING
        ).exists()
