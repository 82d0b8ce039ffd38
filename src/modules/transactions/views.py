"""Transaction API views.

Exposes the ``TransactionService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
``StorageUnavailable`` is left to the API exception handler (503).
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import Role, principal_from_user
from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import role_required
from modules.core.storage import StorageContext
from modules.products.exceptions import ProductAlreadyExists
from modules.transactions.exceptions import (
    Forbidden,
    InsufficientStock,
    InvalidDecision,
    InvalidLineItem,
    OrderNotFound,
    OrderNotPending,
    ProductNotAvailable,
    ProductNotFound,
    QuantityExceedsAvailable,
)
from modules.transactions.filters import TransactionFilter
from modules.transactions.models import Transaction
from modules.transactions.serializers import (
    CreateOrderSerializer,
    PurchaseDecisionSerializer,
    SalesDecisionSerializer,
    TransactionListSerializer,
    TransactionSerializer,
)
from modules.transactions.services import build_transaction_service


class TransactionViewSet(GenericViewSet):
    """ViewSet for sales and purchase orders.

    Uses ``TransactionService`` wired with Django repositories (DIP).
    Who may decide an order is checked by the state machine, so the
    ``confirm`` and ``decision`` actions only require authentication.
    """

    queryset = Transaction.objects.all()
    filterset_class = TransactionFilter
    search_fields = ["reference"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._context = StorageContext.from_settings()
        self._service = build_transaction_service(self._context)

    def get_permissions(self):
        if self.action == "sales_orders":
            return [IsAuthenticated(), role_required(Role.CUSTOMER)()]
        if self.action == "purchase_orders":
            return [IsAuthenticated(), role_required(Role.SUPPLIER)()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "list":
            return TransactionListSerializer
        return TransactionSerializer

    def get_queryset(self):
        queryset = Transaction.objects.using(self._context.using).all()
        principal = principal_from_user(self.request.user)
        if not principal.is_administrative:
            queryset = queryset.filter(counterparty_id=principal.id)
        return queryset

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/transactions/

        Admins and managers see every transaction; everyone else only
        the ones they are the counterparty of.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = TransactionListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/transactions/{pk}/"""
        try:
            order = self._service.get_transaction(pk, principal_from_user(request.user))
        except OrderNotFound:
            return Response(
                {"detail": "Transaction not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(TransactionSerializer(order).data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"], url_path="sales-orders")
    def sales_orders(self, request: Request) -> Response:
        """POST /api/v1/transactions/sales-orders/

        The caller is the customer placing the order.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = self._service.create_sales_order(
                customer_id=str(request.user.pk),
                line_items=serializer.validated_data["items"],
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except QuantityExceedsAvailable as exc:
            return Response(
                {"detail": str(exc), "available": exc.available},
                status=status.HTTP_409_CONFLICT,
            )
        except (InvalidLineItem, ProductNotAvailable) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="purchase-orders")
    def purchase_orders(self, request: Request) -> Response:
        """POST /api/v1/transactions/purchase-orders/

        The caller is the supplier offering the goods.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = self._service.create_purchase_order(
                supplier_id=str(request.user.pk),
                line_items=serializer.validated_data["items"],
            )
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except ProductAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except (InvalidLineItem, ProductNotAvailable) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/transactions/{pk}/confirm/  body ``{"decision": "yes"|"no"}``"""
        serializer = SalesDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = self._service.confirm_sales_order(
                order_id=pk,
                principal=principal_from_user(request.user),
                decision=serializer.validated_data["decision"],
            )
        except (OrderNotFound, ProductNotFound) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except (OrderNotPending, InsufficientStock) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except InvalidDecision as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result)

    @action(detail=True, methods=["post"])
    def decision(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/transactions/{pk}/decision/

        Body ``{"decision": "approve"|"reject", "min_stock_level": N?}``.
        """
        serializer = PurchaseDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = self._service.decide_purchase_order(
                transaction_id=pk,
                principal=principal_from_user(request.user),
                decision=data["decision"],
                min_stock_level=data.get("min_stock_level"),
            )
        except (OrderNotFound, ProductNotFound) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except Forbidden as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except OrderNotPending as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except InvalidDecision as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result)
