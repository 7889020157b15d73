"""
Order status graph and role capabilities.

The graph is plain data so the lifecycle service, the serializers and the
tests all read the same rules. Keys are the stored string values.
"""

from users.models import User, role_value

from .models import Order

S = Order.OrderStatus

ORDER_STATUS_VALUES = frozenset(choice.value for choice in S)
PAYMENT_STATUS_VALUES = frozenset(choice.value for choice in Order.PaymentStatus)

TERMINAL_STATUSES = frozenset({S.DELIVERED.value, S.CANCELLED.value})

VALID_STATUS_TRANSITIONS = {
    S.PENDING.value: frozenset({S.CONFIRMED.value, S.CANCELLED.value}),
    S.CONFIRMED.value: frozenset({S.PREPARING.value, S.CANCELLED.value}),
    S.PREPARING.value: frozenset({S.READY.value, S.CANCELLED.value}),
    # Dine-in and takeaway orders are handed over without a delivery leg
    S.READY.value: frozenset(
        {S.OUT_FOR_DELIVERY.value, S.DELIVERED.value, S.CANCELLED.value}
    ),
    S.OUT_FOR_DELIVERY.value: frozenset({S.DELIVERED.value, S.CANCELLED.value}),
    S.DELIVERED.value: frozenset(),
    S.CANCELLED.value: frozenset(),
}

# Forward order of the happy path; privileged roles may jump ahead along it.
HAPPY_PATH = (
    S.PENDING.value,
    S.CONFIRMED.value,
    S.PREPARING.value,
    S.READY.value,
    S.OUT_FOR_DELIVERY.value,
    S.DELIVERED.value,
)

R = User.Role

ROLE_STATUS_TARGETS = {
    R.CHEF.value: frozenset(
        {S.CONFIRMED.value, S.PREPARING.value, S.READY.value, S.CANCELLED.value}
    ),
    R.WAITER.value: frozenset(
        {S.CONFIRMED.value, S.OUT_FOR_DELIVERY.value, S.DELIVERED.value, S.CANCELLED.value}
    ),
    R.CASHIER.value: frozenset(),
    R.MANAGER.value: ORDER_STATUS_VALUES,
    R.OWNER.value: ORDER_STATUS_VALUES,
    R.ADMIN.value: ORDER_STATUS_VALUES,
}

PAYMENT_ROLES = frozenset(
    {R.CASHIER.value, R.MANAGER.value, R.OWNER.value, R.ADMIN.value}
)


def is_valid_order_status(value):
    return isinstance(value, str) and str(value) in ORDER_STATUS_VALUES


def is_valid_payment_status(value):
    return isinstance(value, str) and str(value) in PAYMENT_STATUS_VALUES


def can_set_order_status(role, target):
    """Whether ``role`` is allowed to request ``target`` at all."""
    return str(target) in ROLE_STATUS_TARGETS.get(role_value(role), frozenset())


def can_set_payment_status(role):
    return role_value(role) in PAYMENT_ROLES


def can_transition(current, target, role=None):
    """
    Whether an order in ``current`` may move to ``target``.

    Everyone may follow a graph edge. Privileged roles may also skip forward
    along the happy path, never backward. Terminal states accept nothing and
    a same-status request is never a transition.
    """
    current, target = str(current), str(target)
    if current in TERMINAL_STATUSES or current == target:
        return False
    if target in VALID_STATUS_TRANSITIONS.get(current, frozenset()):
        return True
    if role_value(role) in User.PRIVILEGED_ROLES:
        if current in HAPPY_PATH and target in HAPPY_PATH:
            return HAPPY_PATH.index(target) > HAPPY_PATH.index(current)
    return False
