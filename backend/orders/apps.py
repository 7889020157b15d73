import atexit
import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"

    broadcaster = None

    def ready(self):
        # One broadcaster per process, handed to services by the views.
        from .events import ChannelLayerBroadcaster

        if self.broadcaster is None:
            self.broadcaster = ChannelLayerBroadcaster()
            atexit.register(self.broadcaster.close)
            logger.debug("Order event broadcaster initialised")
