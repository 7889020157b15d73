import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from orders.exceptions import OrderError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Project-wide DRF exception handler.

    Order lifecycle errors become ``{"error": ..., "code": ...}`` responses with
    the status code declared on the exception class. Everything else falls
    through to DRF's default handling.
    """
    if isinstance(exc, OrderError):
        view = context.get("view")
        logger.warning(
            "Order request rejected (%s) in %s: %s",
            exc.code,
            view.__class__.__name__ if view else "unknown view",
            exc.message,
        )
        return Response({"error": exc.message, "code": exc.code}, status=exc.status_code)

    return exception_handler(exc, context)
