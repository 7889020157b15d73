import logging
import re
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from menu.models import MenuItem
from orders.calculators import OrderCalculator
from orders.events import NEW_ORDER, get_order_broadcaster
from orders.exceptions import NotFoundError, UnavailableError, ValidationError
from orders.models import Order, OrderItem
from orders.policies import require_authenticated
from tables.models import Table

logger = logging.getLogger(__name__)

POSTAL_CODE_RE = re.compile(r"^[0-9]{5,10}$")
PHONE_RE = re.compile(r"^[\d\s\-\+\(\)]{10,15}$")

DELIVERY_FIELD_LIMITS = {
    "street": 200,
    "city": 50,
    "notes": 500,
}
REQUIRED_DELIVERY_FIELDS = ("street", "city", "postal_code", "phone")


class OrderService:
    """Creates orders from a customer's cart and announces them."""

    def __init__(self, broadcaster=None):
        self.broadcaster = broadcaster if broadcaster is not None else get_order_broadcaster()

    def create_order(
        self,
        customer,
        order_type,
        items,
        table_number=None,
        delivery_address=None,
        order_notes="",
        payment_method=Order.PaymentMethod.CASH,
    ) -> Order:
        """
        Validate the cart against live menu and table data and persist a
        ``pending`` order with frozen prices.

        Nothing is written and no event fires if any check fails. The
        ``new-order`` event is published once the order has been committed,
        including when the caller wraps this in its own transaction.
        """
        require_authenticated(customer)

        order_type = str(order_type) if order_type is not None else ""
        payment_method = str(payment_method or Order.PaymentMethod.CASH)

        if order_type not in Order.OrderType.values:
            raise ValidationError(f"Invalid order type '{order_type}'.")
        if payment_method not in Order.PaymentMethod.values:
            raise ValidationError(f"Invalid payment method '{payment_method}'.")

        requested = self._validate_items(items)

        table = None
        address = {}
        if order_type == Order.OrderType.DINE_IN:
            table = self._resolve_table(table_number)
        elif order_type == Order.OrderType.DELIVERY:
            address = self._validate_delivery_address(delivery_address)

        with transaction.atomic():
            menu_items = self._resolve_menu_items(requested)

            now = timezone.now()
            order = Order(
                customer=customer,
                order_type=order_type,
                payment_method=payment_method,
                order_notes=order_notes or "",
                created_at=now,
            )
            if table is not None:
                order.table = table
                order.table_number = table.table_number
            if address:
                order.delivery_street = address["street"]
                order.delivery_city = address["city"]
                order.delivery_postal_code = address["postal_code"]
                order.delivery_phone = address["phone"]
                order.delivery_notes = address.get("notes", "")
                order.estimated_delivery_time = now + timedelta(
                    minutes=settings.ORDER_DELIVERY_ETA_MINUTES
                )

            line_items = []
            for position, (menu_item, (_, quantity)) in enumerate(zip(menu_items, requested)):
                line_items.append(
                    OrderItem(
                        menu_item=menu_item,
                        name=menu_item.name,
                        unit_price=menu_item.price,
                        quantity=quantity,
                        subtotal=OrderCalculator.line_subtotal(menu_item.price, quantity),
                        position=position,
                    )
                )
            order.total_amount = OrderCalculator.order_total(item.subtotal for item in line_items)
            order.save()

            for item in line_items:
                item.order = order
            OrderItem.objects.bulk_create(line_items)

            from orders.serializers.order_serializers import OrderSerializer

            payload = OrderSerializer(order).data
            transaction.on_commit(lambda: self.broadcaster.publish(NEW_ORDER, payload))

        logger.info(
            f"Order {order.order_number} created by user {customer.pk}: "
            f"{order.order_type}, {len(line_items)} item(s), total {order.total_amount}"
        )
        return order

    @staticmethod
    def _validate_items(items):
        if not items:
            raise ValidationError("Order must contain at least one item.")

        requested = []
        for index, item in enumerate(items):
            menu_item_id = item.get("menu_item_id") if isinstance(item, dict) else None
            if menu_item_id in (None, ""):
                raise ValidationError(f"Item {index + 1} is missing a menu item id.")
            quantity = item.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValidationError(f"Item {index + 1} must have a quantity of at least 1.")
            requested.append((menu_item_id, quantity))
        return requested

    @staticmethod
    def _resolve_table(table_number):
        if table_number in (None, ""):
            raise ValidationError("Table number is required for dine-in orders.")
        try:
            return Table.objects.get(table_number=table_number)
        except (Table.DoesNotExist, ValueError, TypeError):
            raise ValidationError(f"Table {table_number} does not exist.")

    @staticmethod
    def _validate_delivery_address(address):
        if not isinstance(address, dict):
            raise ValidationError("Delivery address is required for delivery orders.")

        cleaned = {key: str(address.get(key) or "").strip() for key in (*REQUIRED_DELIVERY_FIELDS, "notes")}

        missing = [field for field in REQUIRED_DELIVERY_FIELDS if not cleaned[field]]
        if missing:
            raise ValidationError(f"Delivery address is incomplete: missing {', '.join(missing)}.")

        for field, limit in DELIVERY_FIELD_LIMITS.items():
            if len(cleaned[field]) > limit:
                raise ValidationError(f"Delivery {field} cannot exceed {limit} characters.")

        if not POSTAL_CODE_RE.match(cleaned["postal_code"]):
            raise ValidationError("Please provide a valid postal code.")
        if not PHONE_RE.match(cleaned["phone"]):
            raise ValidationError("Please provide a valid phone number.")

        return cleaned

    @staticmethod
    def _resolve_menu_items(requested):
        """Look up every requested item in request order."""
        pks = []
        for menu_item_id, _quantity in requested:
            try:
                pks.append(int(menu_item_id))
            except (ValueError, TypeError):
                pks.append(None)

        found = MenuItem.objects.in_bulk([pk for pk in pks if pk is not None])

        menu_items = []
        for (menu_item_id, _quantity), pk in zip(requested, pks):
            menu_item = found.get(pk)
            if menu_item is None:
                raise NotFoundError(f"Menu item {menu_item_id} not found.")
            if not menu_item.is_available:
                raise UnavailableError(f"{menu_item.name} is currently unavailable.")
            menu_items.append(menu_item)
        return menu_items
