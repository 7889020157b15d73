"""
Error taxonomy for the order lifecycle.

Services raise these; the API exception handler in
``restaurant_backend.exceptions`` turns them into ``{"error", "code"}``
responses using the ``status_code`` carried by each class.
"""


class OrderError(Exception):
    """Base class for every recoverable order lifecycle failure."""

    status_code = 400
    default_message = "Order request failed."
    code = "order_error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OrderError):
    """Malformed or incomplete input."""

    default_message = "Invalid order data."
    code = "validation_error"


class NotFoundError(OrderError):
    """Unknown order, menu item or table."""

    status_code = 404
    default_message = "Not found."
    code = "not_found"


class ForbiddenError(OrderError):
    """Authenticated, but not allowed to touch this resource."""

    status_code = 403
    default_message = "You are not allowed to perform this action."
    code = "forbidden"


class UnauthenticatedError(OrderError):
    """Missing or invalid credentials."""

    status_code = 401
    default_message = "Authentication credentials were not provided."
    code = "unauthenticated"


class UnavailableError(OrderError):
    """A referenced menu item exists but cannot be ordered right now."""

    default_message = "Menu item is currently unavailable."
    code = "unavailable"


class InvalidStateError(OrderError):
    """The operation is not valid in the order's current lifecycle state."""

    default_message = "Operation not allowed in the current order state."
    code = "invalid_state"


class InvalidStatusError(OrderError):
    """Unrecognised order or payment status value."""

    default_message = "Invalid status."
    code = "invalid_status"
