"""
Order Lifecycle Tests

Covers OrderLifecycleService:
- Status transitions with timestamps and cancellation reasons
- Role capability checks
- Payment status updates independent of order status
- Customer cancellation
- Events published for every successful write
"""
import pytest
from threading import Barrier, Thread

from django.db import connection, transaction

from orders.exceptions import (
    ForbiddenError,
    InvalidStateError,
    InvalidStatusError,
    NotFoundError,
)
from orders.models import Order
from orders.services import DEFAULT_CANCELLATION_REASON, OrderLifecycleService


@pytest.fixture
def lifecycle(broadcaster):
    return OrderLifecycleService(broadcaster)


@pytest.mark.django_db
class TestStatusTransitions:
    """Happy path and cancellation through the service."""

    def test_confirm_then_cancel_with_reason(self, lifecycle, order, chef, manager, broadcaster):
        """confirmed -> cancelled stores the reason and emits two events in order"""
        lifecycle.update_order_status(order.id, "confirmed", chef)
        lifecycle.update_order_status(
            order.id, "cancelled", manager, cancellation_reason="Out of stock"
        )

        order.refresh_from_db()
        assert order.order_status == "cancelled"
        assert order.cancelled_at is not None
        assert order.cancellation_reason == "Out of stock"

        assert broadcaster.names == ["order-status-updated", "order-status-updated"]
        assert [payload["orderStatus"] for _, payload in broadcaster.events] == [
            "confirmed",
            "cancelled",
        ]

    def test_event_payload_shape(self, lifecycle, order, chef, broadcaster):
        lifecycle.update_order_status(order.id, "confirmed", chef)

        name, payload = broadcaster.events[0]
        assert name == "order-status-updated"
        assert payload == {
            "orderId": order.id,
            "orderNumber": order.order_number,
            "orderStatus": "confirmed",
            "userId": order.customer_id,
        }

    def test_full_kitchen_and_floor_path(self, lifecycle, order, chef, waiter):
        lifecycle.update_order_status(order.id, "confirmed", chef)
        lifecycle.update_order_status(order.id, "preparing", chef)
        lifecycle.update_order_status(order.id, "ready", chef)
        lifecycle.update_order_status(order.id, "out-for-delivery", waiter)
        updated = lifecycle.update_order_status(order.id, "delivered", waiter)

        assert updated.order_status == "delivered"
        assert updated.delivered_at is not None
        assert updated.cancelled_at is None

    def test_ready_can_be_handed_over_directly(self, lifecycle, order, chef, waiter):
        for target in ("confirmed", "preparing", "ready"):
            lifecycle.update_order_status(order.id, target, chef)

        updated = lifecycle.update_order_status(order.id, "delivered", waiter)
        assert updated.order_status == "delivered"

    def test_staff_cancel_without_reason_leaves_it_empty(self, lifecycle, order, waiter):
        updated = lifecycle.update_order_status(order.id, "cancelled", waiter)

        order.refresh_from_db()
        assert updated.cancellation_reason == ""
        assert order.cancellation_reason != DEFAULT_CANCELLATION_REASON
        assert order.cancelled_at is not None

    def test_status_update_leaves_payment_alone(self, lifecycle, order, chef):
        lifecycle.update_order_status(order.id, "confirmed", chef)
        order.refresh_from_db()
        assert order.payment_status == Order.PaymentStatus.PENDING


@pytest.mark.django_db
class TestStatusTransitionFailures:
    """Rejected transitions never write and never publish."""

    def test_unknown_status(self, lifecycle, order, manager, broadcaster):
        with pytest.raises(InvalidStatusError):
            lifecycle.update_order_status(order.id, "eaten", manager)
        assert broadcaster.events == []

    def test_unknown_order(self, lifecycle, manager):
        import uuid

        with pytest.raises(NotFoundError):
            lifecycle.update_order_status(uuid.uuid4(), "confirmed", manager)

    def test_malformed_order_id(self, lifecycle, manager):
        with pytest.raises(NotFoundError):
            lifecycle.update_order_status("not-a-uuid", "confirmed", manager)

    def test_customer_cannot_change_status(self, lifecycle, order, customer):
        with pytest.raises(ForbiddenError):
            lifecycle.update_order_status(order.id, "confirmed", customer)

    def test_cashier_cannot_change_status(self, lifecycle, order, cashier):
        with pytest.raises(ForbiddenError):
            lifecycle.update_order_status(order.id, "confirmed", cashier)

    def test_chef_cannot_deliver(self, lifecycle, order, chef):
        with pytest.raises(ForbiddenError):
            lifecycle.update_order_status(order.id, "delivered", chef)

    def test_staff_cannot_skip_steps(self, lifecycle, order, waiter):
        """pending -> delivered is not a graph edge"""
        with pytest.raises(InvalidStateError):
            lifecycle.update_order_status(order.id, "delivered", waiter)

        order.refresh_from_db()
        assert order.order_status == "pending"

    def test_privileged_can_skip_forward(self, lifecycle, order, owner):
        updated = lifecycle.update_order_status(order.id, "delivered", owner)
        assert updated.order_status == "delivered"
        assert updated.delivered_at is not None

    def test_privileged_cannot_move_backward(self, lifecycle, order, chef, admin_account):
        lifecycle.update_order_status(order.id, "confirmed", chef)
        lifecycle.update_order_status(order.id, "preparing", chef)

        with pytest.raises(InvalidStateError):
            lifecycle.update_order_status(order.id, "pending", admin_account)

    @pytest.mark.parametrize("terminal", ["delivered", "cancelled"])
    def test_terminal_states_are_final(self, lifecycle, order, manager, terminal, broadcaster):
        lifecycle.update_order_status(order.id, terminal, manager)
        broadcaster.events.clear()

        for target in ("pending", "confirmed", "cancelled", "delivered"):
            with pytest.raises(InvalidStateError):
                lifecycle.update_order_status(order.id, target, manager)

        assert broadcaster.events == []

    def test_same_status_is_rejected(self, lifecycle, order, chef):
        lifecycle.update_order_status(order.id, "confirmed", chef)
        with pytest.raises(InvalidStateError):
            lifecycle.update_order_status(order.id, "confirmed", chef)


@pytest.mark.django_db
class TestPaymentStatus:
    """Payment labels are orthogonal to the order status."""

    def test_cashier_marks_paid(self, lifecycle, order, cashier, broadcaster):
        updated = lifecycle.update_payment_status(order.id, "paid", cashier)

        assert updated.payment_status == "paid"
        assert updated.order_status == "pending", "Payment must not touch order status"

        name, payload = broadcaster.events[0]
        assert name == "payment-status-updated"
        assert payload == {
            "orderId": order.id,
            "orderNumber": order.order_number,
            "paymentStatus": "paid",
            "userId": order.customer_id,
        }

    def test_payment_on_terminal_order_is_recorded(self, lifecycle, order, manager, cashier):
        lifecycle.update_order_status(order.id, "cancelled", manager)
        updated = lifecycle.update_payment_status(order.id, "refunded", cashier)

        assert updated.payment_status == "refunded"
        assert updated.order_status == "cancelled"

    def test_unknown_payment_status(self, lifecycle, order, cashier):
        with pytest.raises(InvalidStatusError):
            lifecycle.update_payment_status(order.id, "comped", cashier)

    @pytest.mark.parametrize("role_fixture", ["customer", "chef", "waiter"])
    def test_non_payment_roles_forbidden(self, lifecycle, order, request, role_fixture):
        actor = request.getfixturevalue(role_fixture)
        with pytest.raises(ForbiddenError):
            lifecycle.update_payment_status(order.id, "paid", actor)

    def test_unknown_order(self, lifecycle, cashier):
        import uuid

        with pytest.raises(NotFoundError):
            lifecycle.update_payment_status(uuid.uuid4(), "paid", cashier)


@pytest.mark.django_db
class TestCustomerCancellation:
    """DELETE semantics: owner or privileged, never after a terminal state."""

    def test_owner_cancels_with_default_reason(self, lifecycle, order, customer, broadcaster):
        updated = lifecycle.cancel_order(order.id, customer)

        assert updated.order_status == "cancelled"
        assert updated.cancellation_reason == "Cancelled by user"
        assert updated.cancelled_at is not None
        assert broadcaster.names == ["order-status-updated"]

    def test_owner_cancels_with_reason(self, lifecycle, order, customer):
        updated = lifecycle.cancel_order(order.id, customer, reason="Changed my mind")
        assert updated.cancellation_reason == "Changed my mind"

    def test_other_customer_forbidden(self, lifecycle, order, other_customer):
        with pytest.raises(ForbiddenError):
            lifecycle.cancel_order(order.id, other_customer)

    def test_staff_forbidden(self, lifecycle, order, waiter):
        with pytest.raises(ForbiddenError):
            lifecycle.cancel_order(order.id, waiter)

    def test_manager_can_cancel_any_order(self, lifecycle, order, manager):
        updated = lifecycle.cancel_order(order.id, manager)
        assert updated.order_status == "cancelled"

    def test_cannot_cancel_delivered(self, lifecycle, order, owner, customer):
        lifecycle.update_order_status(order.id, "delivered", owner)

        with pytest.raises(InvalidStateError, match="Cannot cancel delivered order"):
            lifecycle.cancel_order(order.id, customer)

    def test_cancel_twice_fails_cleanly(self, lifecycle, order, customer, broadcaster):
        lifecycle.cancel_order(order.id, customer)
        with pytest.raises(InvalidStateError):
            lifecycle.cancel_order(order.id, customer)
        assert broadcaster.names == ["order-status-updated"]


@pytest.mark.django_db
class TestSequentialWrites:
    """Two writers on one order in sequence: both succeed, last write wins."""

    def test_confirm_and_cancel_both_publish(self, lifecycle, order, chef, waiter, broadcaster):
        lifecycle.update_order_status(order.id, "confirmed", chef)
        lifecycle.update_order_status(order.id, "cancelled", waiter, "Customer left")

        order.refresh_from_db()
        assert order.order_status == "cancelled"
        assert [payload["orderStatus"] for _, payload in broadcaster.events] == [
            "confirmed",
            "cancelled",
        ]

    def test_stale_instance_does_not_overwrite_other_columns(self, lifecycle, order, chef, cashier):
        """update_fields keeps a status write from clobbering a payment write"""
        lifecycle.update_payment_status(order.id, "paid", cashier)
        lifecycle.update_order_status(order.id, "confirmed", chef)

        order.refresh_from_db()
        assert order.payment_status == "paid"
        assert order.order_status == "confirmed"

    def test_rolled_back_write_publishes_nothing(self, lifecycle, order, chef, broadcaster):
        with pytest.raises(RuntimeError):
            with transaction.atomic():
                lifecycle.update_order_status(order.id, "confirmed", chef)
                raise RuntimeError("ticket printer offline")

        order.refresh_from_db()
        assert order.order_status == "pending"
        assert broadcaster.events == []


def run_simultaneously(*writes):
    """Start every write at the same moment from its own thread."""
    results = []
    errors = []
    barrier = Barrier(len(writes))

    def attempt(label, write):
        try:
            barrier.wait()
            write()
            results.append((label, "ok"))
        except InvalidStateError:
            results.append((label, "rejected"))
        except Exception as e:
            errors.append((label, repr(e)))
        finally:
            connection.close()

    threads = [Thread(target=attempt, args=(label, write)) for label, write in writes]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return dict(results), errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentWrites:
    """Writers racing on one order from separate connections."""

    def test_confirm_races_cancel(self, lifecycle, order, chef, waiter, broadcaster):
        """
        Both orders of commit are legal:
        - confirm first, then cancel: both succeed
        - cancel first: confirm is rejected because cancelled is terminal
        Either way the order ends cancelled with one event per successful write.
        """
        outcomes, errors = run_simultaneously(
            ("confirmed", lambda: lifecycle.update_order_status(order.id, "confirmed", chef)),
            ("cancelled", lambda: lifecycle.update_order_status(order.id, "cancelled", waiter, "Customer left")),
        )

        assert errors == []
        assert outcomes["cancelled"] == "ok"
        assert outcomes["confirmed"] in ("ok", "rejected")

        published = sorted(payload["orderStatus"] for _, payload in broadcaster.events)
        succeeded = sorted(label for label, outcome in outcomes.items() if outcome == "ok")
        assert published == succeeded

        order.refresh_from_db()
        assert order.order_status == "cancelled"
        assert order.cancellation_reason == "Customer left"

    def test_status_and_payment_race_keep_both(self, lifecycle, order, chef, cashier, broadcaster):
        outcomes, errors = run_simultaneously(
            ("status", lambda: lifecycle.update_order_status(order.id, "confirmed", chef)),
            ("payment", lambda: lifecycle.update_payment_status(order.id, "paid", cashier)),
        )

        assert errors == []
        assert outcomes == {"status": "ok", "payment": "ok"}
        assert sorted(broadcaster.names) == ["order-status-updated", "payment-status-updated"]

        order.refresh_from_db()
        assert order.order_status == "confirmed"
        assert order.payment_status == "paid"
