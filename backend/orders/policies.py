"""
Role-scoped order visibility.

``order_visibility_filter`` is a pure function from (role, user, filters) to a
``Q`` object; it never touches the database, so it is cheap to unit test and
shared by the list, by-table and detail paths.
"""

import enum

from django.db.models import Q

from users.models import User, role_value

from .exceptions import UnauthenticatedError
from .models import Order

S = Order.OrderStatus


class QueryScope(enum.Enum):
    OWN = "own"
    KITCHEN = "kitchen"
    FLOOR = "floor"
    BILLING = "billing"
    ALL = "all"


ROLE_QUERY_SCOPES = {
    User.Role.CUSTOMER.value: QueryScope.OWN,
    User.Role.CHEF.value: QueryScope.KITCHEN,
    User.Role.WAITER.value: QueryScope.FLOOR,
    User.Role.CASHIER.value: QueryScope.BILLING,
    User.Role.MANAGER.value: QueryScope.ALL,
    User.Role.OWNER.value: QueryScope.ALL,
    User.Role.ADMIN.value: QueryScope.ALL,
}

KITCHEN_STATUSES = (S.PENDING.value, S.CONFIRMED.value, S.PREPARING.value)
FLOOR_EXCLUDED_STATUSES = (S.DELIVERED.value, S.CANCELLED.value)
BILLING_STATUSES = (S.READY.value, S.DELIVERED.value)


def scope_for_role(role):
    # Unknown roles fall back to the narrowest scope
    return ROLE_QUERY_SCOPES.get(role_value(role), QueryScope.OWN)


def _status_component(scope):
    if scope is QueryScope.KITCHEN:
        return Q(order_status__in=KITCHEN_STATUSES)
    if scope is QueryScope.FLOOR:
        return ~Q(order_status__in=FLOOR_EXCLUDED_STATUSES)
    if scope is QueryScope.BILLING:
        return Q(order_status__in=BILLING_STATUSES)
    return Q()


def order_visibility_filter(role, user_id, status=None, table_number=None):
    """
    Build the predicate selecting the orders ``role`` may see.

    An explicit ``status`` replaces only the role's status component; the
    ownership and dine-in restrictions stay. ``table_number`` is ANDed for
    every role.
    """
    scope = scope_for_role(role)

    predicate = Q()
    if scope is QueryScope.OWN:
        predicate &= Q(customer_id=user_id)
    elif scope is QueryScope.FLOOR:
        predicate &= Q(order_type=Order.OrderType.DINE_IN.value)

    if status:
        predicate &= Q(order_status=str(status))
    else:
        predicate &= _status_component(scope)

    if table_number is not None:
        predicate &= Q(table_number=table_number)

    return predicate


def can_view_order(user, order):
    """Owners always see their order; staff and privileged roles see any."""
    if order.customer_id == user.pk:
        return True
    return user.is_privileged or user.is_order_staff


def require_authenticated(user):
    if user is None or not getattr(user, "is_authenticated", False):
        raise UnauthenticatedError()
    return user
