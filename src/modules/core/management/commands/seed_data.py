from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from modules.core.identity import Principal, Role
from modules.core.storage import StorageContext
from modules.products.dtos import CreateProductDTO
from modules.products.exceptions import ProductAlreadyExists
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductLedger
from modules.transactions.services import build_transaction_service


class Command(BaseCommand):
    help = "Seed database with role users, a product catalog and sample orders."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        context = StorageContext.from_settings()
        users = self._seed_users()
        products = self._seed_products(ProductLedger(ProductDjangoRepository(context)), users)
        orders_created = self._seed_orders(users, products, context)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        User = get_user_model()
        users = {}
        for role in Role:
            group, _ = Group.objects.get_or_create(name=role.value)
            user = User.objects.filter(username=role.value).first()
            if user is None:
                user = User.objects.create_user(role.value, password=f"{role.value}123")
            user.groups.add(group)
            users[role.value] = user
        return users

    def _seed_products(self, ledger: ProductLedger, users: dict) -> list[Product]:
        self.stdout.write("Creating products...")
        admin_id = str(users[Role.ADMIN].pk)
        supplier_id = str(users[Role.SUPPLIER].pk)
        catalog = [
            ("27-inch monitor", "electronics", Decimal("1299.90"), 5),
            ("mechanical keyboard", "electronics", Decimal("399.90"), 5),
            ("gaming mouse", "electronics", Decimal("249.90"), 10),
            ("14-inch notebook", "electronics", Decimal("3999.00"), 2),
            ("office desk", "furniture", Decimal("899.00"), 2),
            ("ergonomic chair", "furniture", Decimal("1499.00"), 3),
            ("bookshelf", "furniture", Decimal("699.00"), 1),
            ("a4 paper", "stationery", Decimal("29.90"), 20),
            ("blue pen", "stationery", Decimal("4.90"), 50),
            ("notebook", "stationery", Decimal("19.90"), 30),
        ]
        products: list[Product] = []
        for name, category, price, min_stock in catalog:
            dto = CreateProductDTO(
                name=name,
                category=category,
                price=price,
                stock=random.randint(0, 120),
                min_stock_level=min_stock,
                description=f"{name} ({category})",
                supplied_by=supplier_id,
            )
            try:
                products.append(ledger.create_product(dto, actor_id=admin_id))
            except ProductAlreadyExists:
                products.append(Product.objects.get(name=dto.name))
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, users: dict, products: list[Product], context) -> int:
        self.stdout.write("Creating orders...")
        service = build_transaction_service(context)
        customer = Principal(id=str(users[Role.CUSTOMER].pk), role=Role.CUSTOMER)
        manager = Principal(id=str(users[Role.MANAGER].pk), role=Role.MANAGER)
        supplier_id = str(users[Role.SUPPLIER].pk)
        created = 0

        sellable = [p for p in products if p.purchasable_quantity > 0]
        for product in random.sample(sellable, k=min(3, len(sellable))):
            result = service.create_sales_order(
                customer.id, [{"product_id": product.id, "quantity": 1}]
            )
            created += 1
            if random.random() < 0.5:
                service.confirm_sales_order(result["order_id"], customer, "yes")

        restock = [
            {"kind": "existing", "product_id": p.id, "quantity": 25, "price": p.price}
            for p in products
            if p.is_low_stock
        ]
        if restock:
            result = service.create_purchase_order(supplier_id, restock)
            service.decide_purchase_order(result["order_id"], manager, "approve")
            created += 1

        service.create_purchase_order(
            supplier_id,
            [
                {
                    "kind": "new",
                    "name": f"usb-c hub {random.randint(1000, 9999)}",
                    "category": "electronics",
                    "price": "149.90",
                    "stock": 40,
                    "description": "Seven-port USB-C hub",
                }
            ],
        )
        created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
