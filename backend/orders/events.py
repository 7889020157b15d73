"""
Real-time order events.

Services publish through an ``OrderEventBroadcaster`` handed to them at
construction. The default implementation fans events out through the
Channels layer to every ``OrderEventsConsumer`` in the ``order_events``
group. Publishing never raises: a failed broadcast is logged and the
request that caused it still succeeds.
"""

import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

ORDER_EVENTS_GROUP = "order_events"

NEW_ORDER = "new-order"
ORDER_STATUS_UPDATED = "order-status-updated"
PAYMENT_STATUS_UPDATED = "payment-status-updated"


def convert_complex_types_to_str(data):
    """
    Recursively converts UUID, Decimal and datetime objects in a data structure
    to strings so any channel layer backend can carry it.
    """
    if isinstance(data, dict):
        return {k: convert_complex_types_to_str(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [convert_complex_types_to_str(elem) for elem in data]
    elif isinstance(data, (UUID, Decimal)):
        return str(data)
    elif isinstance(data, (datetime, date)):
        return data.isoformat()
    return data


class OrderEventBroadcaster:
    """Interface for pushing order events to connected clients."""

    def publish(self, event_name, payload):
        raise NotImplementedError

    def close(self):
        pass


class ChannelLayerBroadcaster(OrderEventBroadcaster):
    """
    Broadcast over the configured Channels layer.

    ``group_send`` only enqueues into each subscriber's buffer, so a slow
    client never blocks the request; with no subscribers it is a no-op.
    """

    def __init__(self, group_name=ORDER_EVENTS_GROUP, channel_layer=None):
        self.group_name = group_name
        self._channel_layer = channel_layer
        self._closed = False
        self._lock = threading.Lock()

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    @property
    def closed(self):
        return self._closed

    def publish(self, event_name, payload):
        if self._closed:
            logger.debug(f"Broadcaster closed, dropping '{event_name}' event")
            return

        layer = self.channel_layer
        if layer is None:
            logger.warning(f"No channel layer configured, dropping '{event_name}' event")
            return

        message = {
            "type": "order.event",
            "event": event_name,
            "payload": convert_complex_types_to_str(payload),
        }
        try:
            async_to_sync(layer.group_send)(self.group_name, message)
            logger.debug(f"Broadcast '{event_name}' to group '{self.group_name}'")
        except Exception:
            logger.exception(f"Failed to broadcast '{event_name}' event")

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        logger.info("Order event broadcaster closed")


def order_status_payload(order):
    return {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "orderStatus": str(order.order_status),
        "userId": order.customer_id,
    }


def payment_status_payload(order):
    return {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "paymentStatus": str(order.payment_status),
        "userId": order.customer_id,
    }


def get_order_broadcaster():
    """The process-wide broadcaster created by ``OrdersConfig.ready()``."""
    from django.apps import apps

    return apps.get_app_config("orders").broadcaster
