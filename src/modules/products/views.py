"""Product API views.

Exposes the ``ProductLedger`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import Role, principal_from_user
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdministrative
from modules.core.storage import StorageContext
from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import (
    ProductAlreadyExists,
    ProductInUse,
    ProductNotFound,
)
from modules.products.filters import ProductFilter
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import CustomerProductSerializer, ProductSerializer
from modules.products.services import ProductLedger

ADMIN_ACTIONS = {"create", "partial_update", "destroy", "low_stock"}


class ProductViewSet(GenericViewSet):
    """ViewSet for the product catalog.

    Uses ``ProductLedger`` with ``ProductDjangoRepository`` (DIP).
    Writes go through the ledger; list filtering runs on a queryset
    bound to the same database alias.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "category", "description"]
    ordering_fields = ["name", "category", "price", "stock"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._context = StorageContext.from_settings()
        self._ledger = ProductLedger(repository=ProductDjangoRepository(self._context))

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdministrative()]
        return [IsAuthenticated()]

    def _is_customer(self) -> bool:
        return principal_from_user(self.request.user).role == Role.CUSTOMER

    def get_serializer_class(self):
        if self._is_customer():
            return CustomerProductSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = Product.objects.using(self._context.using).all()
        if self._is_customer():
            queryset = queryset.filter(status=ProductStatus.AVAILABLE)
        return queryset

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/

        Customers only see available products, in a reduced projection.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._ledger.get_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        if self._is_customer() and not product.is_available:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        serializer = self.get_serializer(product)
        return Response(serializer.data)

    @action(detail=False, methods=["get"])
    def categories(self, request: Request) -> Response:
        """GET /api/v1/products/categories/"""
        return Response({"categories": self._ledger.list_categories()})

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        """GET /api/v1/products/low-stock/ (admins and managers)."""
        products = self._ledger.get_low_stock_products()
        serializer = ProductSerializer(products, many=True)
        return Response({"count": len(products), "results": serializer.data})

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        data = request.data

        try:
            dto = CreateProductDTO(
                name=data.get("name", ""),
                category=data.get("category", ""),
                price=data.get("price", 0),
                stock=data.get("stock", 0),
                min_stock_level=data.get("min_stock_level", 0),
                description=data.get("description", ""),
                supplied_by=data.get("supplied_by", ""),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            product = self._ledger.create_product(dto, actor_id=str(request.user.pk))
        except ProductAlreadyExists as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )

        out = ProductSerializer(product)
        return Response(out.data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/

        Stock is not editable here; it only moves through transactions.
        """
        data = request.data
        if "stock" in data:
            return Response(
                {"detail": "Stock can only change through transactions."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            dto = UpdateProductDTO(
                name=data.get("name"),
                category=data.get("category"),
                price=data.get("price"),
                min_stock_level=data.get("min_stock_level"),
                description=data.get("description"),
                status=data.get("status"),
            )
        except (PydanticValidationError, ValueError) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            product = self._ledger.update_product(pk, dto, actor_id=str(request.user.pk))
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except (ProductAlreadyExists, ProductInUse) as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )

        out = ProductSerializer(product)
        return Response(out.data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._ledger.delete_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except ProductInUse as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
