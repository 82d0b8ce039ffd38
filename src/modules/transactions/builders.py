"""Order Builder.

Validates submitted line items and materialises *pending* transactions.
Building an order never touches stock: stock only moves when the State
Machine finalises the order.

Business rules enforced:
- Sales lines must reference existing, available products.
- A sales line may not ask for more than the product's purchasable
  quantity (``stock - min_stock_level``).
- A product appears at most once in a sales order.
- Sales prices are snapshotted from the catalog at build time.
- New-product purchase lines create a ``not available`` placeholder in
  the same unit of work as the order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List

import structlog

from modules.core.storage import unit_of_work
from modules.products.exceptions import ProductNotAvailable
from modules.transactions.constants import TransactionKind
from modules.transactions.dtos import (
    NewProductLine,
    parse_purchase_lines,
    parse_sales_lines,
)
from modules.transactions.exceptions import InvalidLineItem, QuantityExceedsAvailable

if TYPE_CHECKING:
    from modules.products.services import ProductLedger
    from modules.transactions.models import Transaction
    from modules.transactions.repositories.interfaces import ITransactionRepository

logger = structlog.get_logger(__name__)


class OrderBuilder:
    """Builds pending sales and purchase orders.

    Receives the Product Ledger and the transaction repository via
    constructor injection; both must share one ``StorageContext``.
    """

    def __init__(
        self,
        ledger: ProductLedger,
        repository: ITransactionRepository,
    ) -> None:
        self._ledger = ledger
        self._repo = repository
        self._context = repository.context

    def build_sales_order(self, customer_id: str, line_items: Iterable[Any]) -> Transaction:
        """Create a pending sales order for ``customer_id``.

        Raises:
            InvalidLineItem: malformed lines or a product listed twice.
            ProductNotFound: a product does not exist.
            ProductNotAvailable: a product is not available for sale.
            QuantityExceedsAvailable: a line asks for more than can be sold.
        """
        lines = parse_sales_lines(line_items)
        seen = set()
        for line in lines:
            if line.product_id in seen:
                raise InvalidLineItem(
                    f"Product {line.product_id} appears more than once."
                )
            seen.add(line.product_id)

        log = logger.bind(customer_id=str(customer_id), item_count=len(lines))

        with unit_of_work(self._context):
            repo_lines: List[Dict[str, Any]] = []
            total = Decimal("0.00")
            for line in lines:
                product = self._ledger.get_product(line.product_id)
                if not product.is_available:
                    raise ProductNotAvailable(
                        f"Product {product.id} is not available for sale."
                    )
                available = product.purchasable_quantity
                if line.quantity > available:
                    log.warning(
                        "transaction.quantity_exceeds_available",
                        product_id=str(product.id),
                        requested=line.quantity,
                        available=available,
                    )
                    raise QuantityExceedsAvailable(
                        f"Product {product.name}: requested {line.quantity}, "
                        f"available {available}.",
                        product_id=str(product.id),
                        available=available,
                    )

                repo_lines.append(
                    {
                        "product": product,
                        "product_name": product.name,
                        "quantity": line.quantity,
                        "unit_price": product.price,
                    }
                )
                total += product.price * line.quantity

            order = self._repo.create(
                kind=TransactionKind.SALE,
                counterparty_id=str(customer_id),
                lines=repo_lines,
                total_amount=total,
            )

        log.info(
            "transaction.sales_order_created",
            transaction_id=str(order.id),
            reference=order.reference,
            total_amount=str(total),
        )
        return order

    def build_purchase_order(
        self, supplier_id: str, line_items: Iterable[Any]
    ) -> Transaction:
        """Create a pending purchase order for ``supplier_id``.

        Existing-product lines must name an available product.  Each new-product line
        creates a placeholder product, inside the same unit of work as
        the order, so a failed build leaves no orphan placeholder.

        Raises:
            InvalidLineItem: malformed lines or missing descriptive fields.
            ProductNotFound: an existing-product line names no product.
            ProductNotAvailable: an existing-product line names a product that
                is still awaiting approval.
            ProductAlreadyExists: a new-product line reuses a catalog name.
        """
        lines = parse_purchase_lines(line_items)
        log = logger.bind(supplier_id=str(supplier_id), item_count=len(lines))

        with unit_of_work(self._context):
            repo_lines: List[Dict[str, Any]] = []
            total = Decimal("0.00")
            for line in lines:
                if isinstance(line, NewProductLine):
                    product = self._ledger.create_placeholder(
                        line.to_placeholder(str(supplier_id))
                    )
                    unit_price = line.price
                    is_new = True
                else:
                    product = self._ledger.get_product(line.product_id)
                    if not product.is_available:
                        log.warning(
                            "transaction.restock_unavailable_product",
                            product_id=str(product.id),
                        )
                        raise ProductNotAvailable(
                            f"Product {product.id} is awaiting approval and cannot be restocked."
                        )
                    unit_price = line.price if line.price > 0 else product.price
                    is_new = False

                repo_lines.append(
                    {
                        "product": product,
                        "product_name": product.name,
                        "quantity": line.quantity,
                        "unit_price": unit_price,
                        "is_new_product": is_new,
                    }
                )
                total += unit_price * line.quantity

            order = self._repo.create(
                kind=TransactionKind.PURCHASE,
                counterparty_id=str(supplier_id),
                lines=repo_lines,
                total_amount=total,
            )

        log.info(
            "transaction.purchase_order_created",
            transaction_id=str(order.id),
            reference=order.reference,
            new_products=sum(1 for line in repo_lines if line["is_new_product"]),
        )
        return order
