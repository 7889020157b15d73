import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from orders.events import (
    ORDER_STATUS_UPDATED,
    PAYMENT_STATUS_UPDATED,
    get_order_broadcaster,
    order_status_payload,
    payment_status_payload,
)
from orders.exceptions import (
    ForbiddenError,
    InvalidStateError,
    InvalidStatusError,
    NotFoundError,
)
from orders.models import Order
from orders.policies import require_authenticated
from orders.state_machine import (
    can_set_order_status,
    can_set_payment_status,
    can_transition,
    is_valid_order_status,
    is_valid_payment_status,
)

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cancelled by user"


class OrderLifecycleService:
    """
    Order and payment status transitions.

    Each write locks the single order row for the read-modify-write, saves
    only the columns it touched and publishes its own event once the
    transaction commits. Concurrent writers on one order are serialised by the
    row lock; the last committed write wins.
    """

    def __init__(self, broadcaster=None):
        self.broadcaster = broadcaster if broadcaster is not None else get_order_broadcaster()

    def _publish_on_commit(self, event_name, payload):
        # Deferred to the outermost commit; dropped if any enclosing block rolls back.
        transaction.on_commit(lambda: self.broadcaster.publish(event_name, payload))

    @staticmethod
    def _lock_order(order_id):
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Order not found.")

    def update_order_status(self, order_id, new_status, actor, cancellation_reason=None) -> Order:
        require_authenticated(actor)

        if not is_valid_order_status(new_status):
            raise InvalidStatusError(f"Invalid order status '{new_status}'.")
        new_status = str(new_status)
        if not can_set_order_status(actor.role, new_status):
            logger.warning(
                f"User {actor.pk} ({actor.role}) tried to set order {order_id} to {new_status}"
            )
            raise ForbiddenError(f"Role '{actor.role}' cannot set order status to '{new_status}'.")

        with transaction.atomic():
            order = self._lock_order(order_id)
            previous = order.order_status

            if not can_transition(previous, new_status, actor.role):
                raise InvalidStateError(
                    f"Cannot transition order from {previous} to {new_status}."
                )

            order.order_status = new_status
            update_fields = ["order_status", "updated_at"]

            now = timezone.now()
            if new_status == Order.OrderStatus.DELIVERED:
                order.delivered_at = now
                update_fields.append("delivered_at")
            elif new_status == Order.OrderStatus.CANCELLED:
                order.cancelled_at = now
                order.cancellation_reason = cancellation_reason or ""
                update_fields.extend(["cancelled_at", "cancellation_reason"])

            order.save(update_fields=update_fields)
            self._publish_on_commit(ORDER_STATUS_UPDATED, order_status_payload(order))

        logger.info(
            f"Order {order.order_number} status {previous} -> {new_status} by user {actor.pk}"
        )
        return order

    def update_payment_status(self, order_id, new_payment_status, actor) -> Order:
        """Record a payment label; the order status is left untouched."""
        require_authenticated(actor)

        if not is_valid_payment_status(new_payment_status):
            raise InvalidStatusError(f"Invalid payment status '{new_payment_status}'.")
        new_payment_status = str(new_payment_status)
        if not can_set_payment_status(actor.role):
            logger.warning(
                f"User {actor.pk} ({actor.role}) tried to set payment on order {order_id}"
            )
            raise ForbiddenError(f"Role '{actor.role}' cannot update payment status.")

        with transaction.atomic():
            order = self._lock_order(order_id)
            previous = order.payment_status
            order.payment_status = new_payment_status
            order.save(update_fields=["payment_status", "updated_at"])
            self._publish_on_commit(PAYMENT_STATUS_UPDATED, payment_status_payload(order))

        logger.info(
            f"Order {order.order_number} payment {previous} -> {new_payment_status} by user {actor.pk}"
        )
        return order

    def cancel_order(self, order_id, actor, reason=None) -> Order:
        """Self-service cancellation by the owning customer or a privileged role."""
        require_authenticated(actor)

        with transaction.atomic():
            order = self._lock_order(order_id)

            if order.customer_id != actor.pk and not actor.is_privileged:
                logger.warning(f"User {actor.pk} tried to cancel order {order.order_number}")
                raise ForbiddenError("Not authorized to cancel this order.")

            if order.order_status == Order.OrderStatus.DELIVERED:
                raise InvalidStateError("Cannot cancel delivered order.")
            if order.order_status == Order.OrderStatus.CANCELLED:
                raise InvalidStateError("Order is already cancelled.")

            order.order_status = Order.OrderStatus.CANCELLED
            order.cancelled_at = timezone.now()
            order.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON
            order.save(
                update_fields=["order_status", "cancelled_at", "cancellation_reason", "updated_at"]
            )
            self._publish_on_commit(ORDER_STATUS_UPDATED, order_status_payload(order))

        logger.info(f"Order {order.order_number} cancelled by user {actor.pk}: {order.cancellation_reason}")
        return order
