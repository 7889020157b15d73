import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from .events import ORDER_EVENTS_GROUP

logger = logging.getLogger(__name__)

UNAUTHENTICATED_CLOSE_CODE = 4001


class OrderEventsConsumer(AsyncWebsocketConsumer):
    """
    Streams order lifecycle events to dashboards.

    Every authenticated connection joins one group and receives every event;
    clients re-fetch through the REST API for anything their role may see.
    """

    group_name = ORDER_EVENTS_GROUP

    async def connect(self):
        self.joined = False
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated order events WebSocket")
            await self.close(code=UNAUTHENTICATED_CLOSE_CODE)
            return

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        self.joined = True
        await self.accept()

        await self.send(text_data=json.dumps({"type": "connection_established"}))
        logger.info(f"Order events WebSocket connected: user={user.pk}, role={user.role}")

    async def disconnect(self, close_code):
        if getattr(self, "joined", False):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            self.joined = False
        logger.info(f"Order events WebSocket disconnected: code={close_code}")

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed WebSocket message")
            return

        if isinstance(data, dict) and data.get("type") == "ping":
            await self.send(text_data=json.dumps({"type": "pong"}))
        else:
            logger.debug(f"Ignoring WebSocket message: {data!r}")

    # --- Channel layer handlers ---

    async def order_event(self, event):
        await self.send(
            text_data=json.dumps({"event": event["event"], "payload": event["payload"]})
        )
