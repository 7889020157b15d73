"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users for every role, menu items, tables and orders.
"""
import pytest
from decimal import Decimal

from django.apps import apps
from django.db import DEFAULT_DB_ALIAS, connections
from rest_framework.test import APIClient

from menu.models import MenuItem
from orders.events import OrderEventBroadcaster
from orders.models import Order
from orders.services import OrderService
from tables.models import Table
from users.models import User


# ============================================================================
# EVENT FIXTURES
# ============================================================================

def run_commit_callbacks(using=DEFAULT_DB_ALIAS):
    """
    Fire the on_commit callbacks held back by the test transaction.

    Non-transactional tests never commit, so anything the services deferred
    with ``transaction.on_commit`` would otherwise never run. Callbacks
    registered inside a block that rolled back were already discarded.
    """
    pending = connections[using].run_on_commit
    while pending:
        _savepoint_ids, callback, _robust = pending.pop(0)
        callback()


class RecordingBroadcaster(OrderEventBroadcaster):
    """Test double that keeps every published event in memory."""

    def __init__(self):
        self._events = []
        self.closed = False

    def publish(self, event_name, payload):
        self._events.append((event_name, payload))

    @property
    def events(self):
        """Events published so far, as if the test transaction had committed."""
        run_commit_callbacks()
        return self._events

    def reset(self):
        self._events.clear()

    def close(self):
        self.closed = True

    @property
    def names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def broadcaster(monkeypatch):
    """Recording broadcaster installed as the process-wide one."""
    recorder = RecordingBroadcaster()
    monkeypatch.setattr(apps.get_app_config("orders"), "broadcaster", recorder)
    return recorder


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def make_user(db):
    """Create a user with the given role."""
    def _make_user(role, email=None, **extra):
        role_name = str(role)
        return User.objects.create_user(
            email=email or f"{role_name}@restaurant.test",
            password="password123",
            name=role_name.title(),
            role=role,
            **extra,
        )
    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(User.Role.CUSTOMER)


@pytest.fixture
def other_customer(make_user):
    return make_user(User.Role.CUSTOMER, email="other.customer@restaurant.test")


@pytest.fixture
def chef(make_user):
    return make_user(User.Role.CHEF)


@pytest.fixture
def waiter(make_user):
    return make_user(User.Role.WAITER)


@pytest.fixture
def cashier(make_user):
    return make_user(User.Role.CASHIER)


@pytest.fixture
def manager(make_user):
    return make_user(User.Role.MANAGER)


@pytest.fixture
def owner(make_user):
    return make_user(User.Role.OWNER)


@pytest.fixture
def admin_account(make_user):
    return make_user(User.Role.ADMIN, is_staff=True)


# ============================================================================
# MENU & TABLE FIXTURES
# ============================================================================

@pytest.fixture
def burger(db):
    return MenuItem.objects.create(name="Burger", price=Decimal("12.99"))


@pytest.fixture
def fries(db):
    return MenuItem.objects.create(name="Fries", price=Decimal("3.50"))


@pytest.fixture
def sold_out_item(db):
    return MenuItem.objects.create(
        name="Lobster", price=Decimal("39.00"), is_available=False
    )


@pytest.fixture
def table(db):
    return Table.objects.create(table_number=5, capacity=4)


@pytest.fixture
def delivery_address():
    return {
        "street": "12 Market Street",
        "city": "Springfield",
        "postal_code": "12345",
        "phone": "+1 555 123 4567",
        "notes": "Ring twice",
    }


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def order_service(broadcaster):
    return OrderService(broadcaster)


@pytest.fixture
def cart(burger, fries):
    """Two burgers and one fries: 12.99 x 2 + 3.50 x 1 = 29.48."""
    return [
        {"menu_item_id": burger.id, "quantity": 2},
        {"menu_item_id": fries.id, "quantity": 1},
    ]


@pytest.fixture
def make_order(order_service, customer, cart):
    """Create an order through the service; defaults to a takeaway order."""
    def _make_order(user=None, order_type=Order.OrderType.TAKEAWAY, items=None, **kwargs):
        return order_service.create_order(
            customer=user or customer,
            order_type=order_type,
            items=items if items is not None else cart,
            **kwargs,
        )
    return _make_order


@pytest.fixture
def order(make_order, broadcaster):
    """A pending takeaway order with the creation event already drained."""
    created = make_order()
    broadcaster.events.clear()
    return created


@pytest.fixture
def dine_in_order(make_order, table, broadcaster):
    created = make_order(order_type=Order.OrderType.DINE_IN, table_number=table.table_number)
    broadcaster.events.clear()
    return created


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/health/')
            assert response.status_code == 200
    """
    return APIClient()


@pytest.fixture
def client_for():
    """
    Build an API client authenticated as ``user``.

    Usage:
        def test_protected_endpoint(client_for, chef):
            response = client_for(chef).get('/api/orders/')
            assert response.status_code == 200
    """
    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for
