from decimal import Decimal

from django.db.models import Count, Q, Sum

from orders.models import Order


class OrderStatsService:
    @staticmethod
    def get_order_stats():
        """
        Aggregate counts across all orders. Revenue only counts orders that
        were both delivered and paid.
        """
        S = Order.OrderStatus
        delivered_and_paid = Q(
            order_status=S.DELIVERED, payment_status=Order.PaymentStatus.PAID
        )
        totals = Order.objects.aggregate(
            total_orders=Count("id"),
            pending_orders=Count("id", filter=Q(order_status=S.PENDING)),
            completed_orders=Count("id", filter=Q(order_status=S.DELIVERED)),
            cancelled_orders=Count("id", filter=Q(order_status=S.CANCELLED)),
            total_revenue=Sum("total_amount", filter=delivered_and_paid),
        )
        totals["total_revenue"] = totals["total_revenue"] or Decimal("0.00")
        return totals
