"""Order API views.

Exposes ``OrderLifecycleService`` via HTTP using DRF ViewSets.
Each request is resolved to the caller's shop account, checked against
the role policy, then handed to the service.  ``OrderRejected`` is
translated into an HTTP status from a single table; anything else
propagates.
"""

from __future__ import annotations

from typing import Optional

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.models import Account, AccountRole
from modules.accounts.repositories.django_repository import AccountDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.authorization import authorize
from modules.orders.constants import OrderAction
from modules.orders.dtos import translate_place_order_request
from modules.orders.exceptions import ErrorKind, OrderRejected
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    TransitionSerializer,
)
from modules.orders.services import OrderLifecycleService
from modules.products.ledger import StockLedger
from modules.products.repositories.django_repository import ProductDjangoRepository

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ORDER_ID: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_CUSTOMER_ID: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_PRODUCT_ID: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_PRODUCTS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ORDER_CANCELED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ORDER_ALREADY_DELIVERED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ORDER_NOT_DELIVERED_YET: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_ENOUGH_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_OPERATION: status.HTTP_403_FORBIDDEN,
}


def rejection_response(exc: OrderRejected) -> Response:
    return Response(
        {"detail": exc.message, "code": exc.kind.value},
        status=STATUS_BY_KIND[exc.kind],
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderLifecycleService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet`` -- all writes go through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "state"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._accounts = AccountDjangoRepository()
        self._service = OrderLifecycleService(
            order_repository=OrderDjangoRepository(),
            account_repository=self._accounts,
            stock_ledger=StockLedger(ProductDjangoRepository()),
        )

    def _caller(self, request: Request) -> Optional[Account]:
        return self._accounts.get_for_user(request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Body: ``{"products": {"<product id>": <quantity>}, "notes": ""}``.
        The order is placed for the calling client account.
        """
        payload = PlaceOrderSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        try:
            customer = authorize(self._caller(request), OrderAction.PLACE)
            dto = translate_place_order_request(
                customer.id, data["products"], data.get("notes", "")
            )
            order = self._service.place_order(dto)
        except OrderRejected as exc:
            return rejection_response(exc)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        caller = self._caller(self.request)
        if caller is None:
            return Order.objects.none()
        if caller.role == AccountRole.CLIENT:
            return self._service.list_orders({"customer_id": caller.id})
        return self._service.list_orders()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Clients only see their own orders.  Filtering (state, customer,
        date range) is handled by ``OrderFilter``; results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
            caller = self._caller(request)
            if caller is None or (
                caller.role == AccountRole.CLIENT and order.customer_id != caller.id
            ):
                raise OrderRejected(ErrorKind.INVALID_ORDER_ID)
        except OrderRejected as exc:
            return rejection_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Lifecycle transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def deliver(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/deliver/ (expeditors only)."""
        notes = self._notes(request)
        try:
            actor = authorize(self._caller(request), OrderAction.DELIVER)
            order = self._service.deliver_order(pk, actor_id=actor.id, notes=notes)
        except OrderRejected as exc:
            return rejection_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/ (the owning client only)."""
        notes = self._notes(request)
        try:
            requester = authorize(self._caller(request), OrderAction.CANCEL)
            order = self._service.cancel_order(pk, requester.id, notes=notes)
        except OrderRejected as exc:
            return rejection_response(exc)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="return", url_name="return")
    def return_order(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/return/ (clients only)."""
        notes = self._notes(request)
        try:
            requester = authorize(self._caller(request), OrderAction.RETURN)
            order = self._service.return_order(pk, requester.id, notes=notes)
        except OrderRejected as exc:
            return rejection_response(exc)
        return Response(OrderSerializer(order).data)

    @staticmethod
    def _notes(request: Request) -> str:
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data.get("notes", "")
