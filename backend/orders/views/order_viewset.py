import logging

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from restaurant_backend.base import BaseViewSet
from orders.events import get_order_broadcaster
from orders.serializers import (
    CancelOrderSerializer,
    OrderCreateSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
)
from orders.services import (
    OrderLifecycleService,
    OrderQueryService,
    OrderService,
    OrderStatsService,
)
from users.models import User
from users.permissions import HasOrderRole, IsPrivilegedRole

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)

R = User.Role
PRIVILEGED = [R.ADMIN, R.MANAGER, R.OWNER]


class OrderViewSet(StatusActionsMixin, BaseViewSet):
    """
    REST surface of the order lifecycle.

    Every read goes through ``OrderQueryService`` so the role visibility
    policy applies; every write goes through a service that publishes the
    matching real-time event.
    """

    serializer_class = OrderSerializer
    permission_classes = [HasOrderRole]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    # Actions missing from this map are open to any authenticated user.
    action_roles = {
        "create": [R.CUSTOMER],
        "by_table": [R.WAITER, R.CASHIER, *PRIVILEGED],
        "update_status": [R.CHEF, R.WAITER, *PRIVILEGED],
        "update_payment": [R.CASHIER, *PRIVILEGED],
    }

    def get_broadcaster(self):
        return get_order_broadcaster()

    def list(self, request: Request) -> Response:
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        queryset = OrderQueryService.list_orders(
            request.user,
            status=query.validated_data.get("status") or None,
            table_number=query.validated_data.get("table_number"),
        )
        return self.paginated_response(queryset)

    def create(self, request: Request) -> Response:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService(self.get_broadcaster()).create_order(
            customer=request.user,
            order_type=data["order_type"],
            items=[dict(item) for item in data["items"]],
            table_number=data.get("table_number"),
            delivery_address=dict(data["delivery_address"]) if data.get("delivery_address") else None,
            order_notes=data.get("order_notes", ""),
            payment_method=data.get("payment_method"),
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk=None) -> Response:
        order = OrderQueryService.get_order_for_actor(pk, request.user)
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk=None) -> Response:
        """
        Cancels the order. Orders are never deleted; the response is the
        cancelled order.
        """
        serializer = CancelOrderSerializer(data=request.data or {})
        serializer.is_valid(raise_exception=True)

        order = OrderLifecycleService(self.get_broadcaster()).cancel_order(
            pk, request.user, reason=serializer.validated_data.get("reason")
        )
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"], url_path="stats", permission_classes=[IsPrivilegedRole])
    def stats(self, request: Request) -> Response:
        return Response(OrderStatsService.get_order_stats())

    @action(detail=False, methods=["get"], url_path=r"by-table/(?P<table_number>[0-9]+)")
    def by_table(self, request: Request, table_number=None) -> Response:
        """Role-scoped list narrowed to one table."""
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        queryset = OrderQueryService.list_orders(
            request.user,
            status=query.validated_data.get("status") or None,
            table_number=int(table_number),
        )
        return self.paginated_response(queryset)
