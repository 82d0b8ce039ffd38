"""Background tasks for the products module."""

import structlog
from celery import shared_task

from modules.core.storage import StorageContext
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductLedger

logger = structlog.get_logger(__name__)


@shared_task(name="products.scan_low_stock")
def scan_low_stock():
    """Log every product at or below its minimum stock level."""
    ledger = ProductLedger(ProductDjangoRepository(StorageContext.from_settings()))
    products = ledger.get_low_stock_products()
    for product in products:
        logger.warning(
            "product.low_stock",
            product_id=str(product.id),
            name=product.name,
            stock=product.stock,
            min_stock_level=product.min_stock_level,
        )
    return {"count": len(products), "product_ids": [str(p.id) for p in products]}
