"""
Orders services package.

- OrderService: order creation from a validated cart
- OrderLifecycleService: order/payment status transitions and cancellation
- OrderQueryService: role-scoped reads
- OrderStatsService: aggregate statistics
"""

from .order_service import OrderService
from .lifecycle_service import OrderLifecycleService, DEFAULT_CANCELLATION_REASON
from .query_service import OrderQueryService
from .stats_service import OrderStatsService

__all__ = [
    'OrderService',
    'OrderLifecycleService',
    'DEFAULT_CANCELLATION_REASON',
    'OrderQueryService',
    'OrderStatsService',
]
