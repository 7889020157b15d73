import logging

from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from orders.serializers import (
    OrderSerializer,
    UpdateOrderStatusSerializer,
    UpdatePaymentStatusSerializer,
)
from orders.services import OrderLifecycleService

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order and payment status transition actions

    This mixin provides action methods for OrderViewSet. Role checks for
    both actions are declared in the viewset's ``action_roles``.
    """

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request: Request, pk=None) -> Response:
        """
        Moves the order to a new lifecycle status.

        Body: ``{"order_status": "...", "cancellation_reason": "..."}``
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderLifecycleService(self.get_broadcaster()).update_order_status(
            pk,
            serializer.validated_data["order_status"],
            request.user,
            cancellation_reason=serializer.validated_data.get("cancellation_reason"),
        )
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["put"], url_path="payment")
    def update_payment(self, request: Request, pk=None) -> Response:
        """Records a payment status label. Body: ``{"payment_status": "..."}``"""
        serializer = UpdatePaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderLifecycleService(self.get_broadcaster()).update_payment_status(
            pk,
            serializer.validated_data["payment_status"],
            request.user,
        )
        return Response(OrderSerializer(order).data)
