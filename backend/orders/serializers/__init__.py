"""
Orders serializers package - modular serializer layer.
"""

# Order serializers
from .order_serializers import (
    OrderItemSerializer,
    OrderSerializer,
    DeliveryAddressSerializer,
    OrderItemRequestSerializer,
    OrderCreateSerializer,
    OrderListQuerySerializer,
)

# Status serializers
from .status_serializers import (
    UpdateOrderStatusSerializer,
    UpdatePaymentStatusSerializer,
    CancelOrderSerializer,
)

__all__ = [
    'OrderItemSerializer',
    'OrderSerializer',
    'DeliveryAddressSerializer',
    'OrderItemRequestSerializer',
    'OrderCreateSerializer',
    'OrderListQuerySerializer',
    'UpdateOrderStatusSerializer',
    'UpdatePaymentStatusSerializer',
    'CancelOrderSerializer',
]
