import logging

from django.core.exceptions import ValidationError as DjangoValidationError

from orders.exceptions import ForbiddenError, InvalidStatusError, NotFoundError
from orders.models import Order
from orders.policies import can_view_order, order_visibility_filter, require_authenticated
from orders.state_machine import is_valid_order_status

logger = logging.getLogger(__name__)


class OrderQueryService:
    """Read paths for orders, always filtered through the visibility policy."""

    @staticmethod
    def list_orders(actor, status=None, table_number=None):
        require_authenticated(actor)

        if status and not is_valid_order_status(status):
            raise InvalidStatusError(f"Invalid order status '{status}'.")

        predicate = order_visibility_filter(
            actor.role, actor.pk, status=status, table_number=table_number
        )
        return (
            Order.objects.filter(predicate)
            .select_related("customer", "table")
            .prefetch_related("items")
            .order_by("-created_at")
        )

    @staticmethod
    def get_order_for_actor(order_id, actor) -> Order:
        require_authenticated(actor)

        try:
            order = (
                Order.objects.select_related("customer", "table")
                .prefetch_related("items")
                .get(pk=order_id)
            )
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Order not found.")

        if not can_view_order(actor, order):
            logger.warning(f"User {actor.pk} denied access to order {order.order_number}")
            raise ForbiddenError("Not authorized to view this order.")
        return order
