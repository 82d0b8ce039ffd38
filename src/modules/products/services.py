"""Product Ledger (Use Cases).

Owns product records and every change to stock.  No other component
writes ``Product.stock``: sales confirmations, purchase approvals and
placeholder creation all come through here.

Business rules enforced here:
- Stock never goes negative: decrements are a single conditional UPDATE.
- Product names are unique once normalised.
- Placeholders start ``not available`` and become ``available`` on approval.
- A product referenced by a pending transaction cannot be deleted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.utils import timezone

from modules.core.storage import unit_of_work
from modules.products.exceptions import (
    InsufficientStock,
    ProductAlreadyExists,
    ProductInUse,
    ProductNotFound,
)
from modules.products.models import Product, ProductStatus

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductDTO,
        PlaceholderProductDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductLedger:
    """Application service for product records and stock arithmetic.

    Receives an ``IProductRepository`` via constructor injection (DIP);
    the repository's ``StorageContext`` scopes every unit of work.
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository
        self._context = repository.context

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def get_product(self, id: Any) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def adjust_stock(self, id: Any, delta: int) -> Product:
        """Apply ``stock += delta`` atomically and return the updated product.

        Raises:
            ProductNotFound: if the product does not exist.
            InsufficientStock: if the result would be negative.
        """
        changed = self._repo.apply_stock_delta(id, delta)
        if not changed:
            if not self._repo.exists(id):
                raise ProductNotFound(f"Product {id} not found.")
            logger.warning("product.insufficient_stock", product_id=str(id), delta=delta)
            raise InsufficientStock(
                f"Product {id}: cannot apply stock change of {delta}.",
                product_id=str(id),
                requested=-delta,
            )

        product = self.get_product(id)
        logger.info(
            "product.stock_adjusted",
            product_id=str(id),
            delta=delta,
            stock=product.stock,
        )
        return product

    def create_placeholder(self, dto: PlaceholderProductDTO) -> Product:
        """Create a ``not available`` product proposed on a purchase order.

        Raises:
            ProductAlreadyExists: if the normalised name is already taken.
        """
        log = logger.bind(name=dto.name, supplied_by=dto.supplied_by)
        if self._repo.get_by_name(dto.name):
            log.warning("product.duplicate_name")
            raise ProductAlreadyExists(f"Product '{dto.name}' already registered.")

        product = Product(
            name=dto.name,
            category=dto.category,
            description=dto.description,
            price=dto.price,
            stock=dto.stock,
            min_stock_level=dto.min_stock_level,
            status=ProductStatus.NOT_AVAILABLE,
            supplied_by=dto.supplied_by,
            created_by=dto.supplied_by,
            last_updated_by=dto.supplied_by,
        )
        product = self._repo.save(product)
        log.info("product.placeholder_created", product_id=str(product.id))
        return product

    def approve(
        self,
        id: Any,
        approver_id: str,
        quantity: int,
        min_stock_level: Optional[int] = None,
        price_override: Optional[Decimal] = None,
        replace_stock: bool = False,
    ) -> Product:
        """Make a product available and book the approved quantity.

        ``replace_stock`` is used for placeholders booked by their own
        purchase order: their stock is set to ``quantity`` whatever their
        current status.  Every other product has ``quantity`` added to its
        current stock.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        with unit_of_work(self._context):
            product = self.get_product(id)
            set_stock = replace_stock

            now = timezone.now()
            product.status = ProductStatus.AVAILABLE
            product.approved_by = approver_id
            product.approved_at = now
            product.last_updated_by = approver_id
            fields = ["status", "approved_by", "approved_at", "last_updated_by"]

            if min_stock_level is not None:
                product.min_stock_level = min_stock_level
                fields.append("min_stock_level")
            if price_override and price_override > 0 and price_override != product.price:
                product.price = price_override
                fields.append("price")
            if set_stock:
                product.stock = quantity
                fields.append("stock")

            product.save(using=self._context.using, update_fields=fields)
            if not set_stock:
                product = self.adjust_stock(id, quantity)

        logger.info(
            "product.approved",
            product_id=str(id),
            approved_by=approver_id,
            quantity=quantity,
            stock=product.stock,
            stock_replaced=set_stock,
        )
        return product

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def create_product(self, dto: CreateProductDTO, actor_id: str) -> Product:
        """Create an available catalog entry.

        Raises:
            ProductAlreadyExists: if the normalised name is already taken.
        """
        log = logger.bind(name=dto.name)
        with unit_of_work(self._context):
            if self._repo.get_by_name(dto.name):
                log.warning("product.duplicate_name")
                raise ProductAlreadyExists(f"Product '{dto.name}' already registered.")

            product = Product(
                name=dto.name,
                category=dto.category,
                description=dto.description,
                price=dto.price,
                stock=dto.stock,
                min_stock_level=dto.min_stock_level,
                status=ProductStatus.AVAILABLE,
                supplied_by=dto.supplied_by,
                created_by=actor_id,
                last_updated_by=actor_id,
                approved_by=actor_id,
                approved_at=timezone.now(),
            )
            product = self._repo.save(product)
        log.info("product.created", product_id=str(product.id))
        return product

    def update_product(self, id: Any, dto: UpdateProductDTO, actor_id: str) -> Product:
        """Update catalog fields.  Stock is not editable here.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductAlreadyExists: if the new name belongs to another product.
            ProductInUse: if the status changes while a pending transaction
                still references the product.
        """
        changes = dto.changes()
        with unit_of_work(self._context):
            product = self.get_product(id)
            new_status = changes.get("status")
            if (
                new_status is not None
                and new_status != product.status
                and self._repo.has_pending_references(id)
            ):
                raise ProductInUse(
                    f"Product {id} is referenced by a pending transaction; "
                    "its status cannot change until that transaction is decided."
                )
            new_name = changes.get("name")
            if new_name and new_name != product.name:
                clash = self._repo.get_by_name(new_name)
                if clash and clash.pk != product.pk:
                    raise ProductAlreadyExists(f"Product '{new_name}' already registered.")

            for field, value in changes.items():
                setattr(product, field, value)
            product.last_updated_by = actor_id
            product.save(
                using=self._context.using,
                update_fields=[*changes.keys(), "last_updated_by"],
            )
        logger.info("product.updated", product_id=str(id), fields=sorted(changes))
        return product

    def delete_product(self, id: Any) -> None:
        """Remove a product that no pending transaction references.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductInUse: if a pending transaction still references it.
        """
        with unit_of_work(self._context):
            self.get_product(id)
            if self._repo.has_pending_references(id):
                raise ProductInUse(
                    f"Product {id} is referenced by a pending transaction."
                )
            self._repo.delete(id)
        logger.info("product.deleted", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return a list of products, optionally filtered."""
        return self._repo.list(filters)

    def list_by_category(self, category: str) -> List[Product]:
        products = self._repo.list({"category": category})
        if not products:
            logger.info("product.category_empty", category=category)
        return products

    def list_categories(self) -> List[str]:
        return self._repo.categories()

    def get_low_stock_products(self) -> List[Product]:
        """Products whose stock is at or below their minimum stock level."""
        products = self._repo.low_stock()
        logger.info("product.low_stock_checked", count=len(products))
        return products
