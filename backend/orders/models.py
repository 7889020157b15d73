import logging
import re
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.db.models import IntegerField, Max
from django.db.models.functions import Cast, Substr
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from menu.models import MenuItem
from tables.models import Table

logger = logging.getLogger(__name__)


class Order(models.Model):
    """
    A customer order moving through the kitchen/floor lifecycle.

    Money values are snapshots taken at creation time; ``total_amount`` is
    never edited directly and always equals the sum of the line subtotals.
    """

    class OrderStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        PREPARING = "preparing", _("Preparing")
        READY = "ready", _("Ready")
        OUT_FOR_DELIVERY = "out-for-delivery", _("Out for Delivery")
        DELIVERED = "delivered", _("Delivered")
        CANCELLED = "cancelled", _("Cancelled")

    class OrderType(models.TextChoices):
        DELIVERY = "delivery", _("Delivery")
        DINE_IN = "dine-in", _("Dine In")
        TAKEAWAY = "takeaway", _("Takeaway")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Failed")
        REFUNDED = "refunded", _("Refunded")

    class PaymentMethod(models.TextChoices):
        CASH = "cash", _("Cash")
        CARD = "card", _("Card")
        ONLINE = "online", _("Online")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=20, unique=True, editable=False)

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )

    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    order_status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )

    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    # --- Dine-in ---
    table_number = models.PositiveIntegerField(null=True, blank=True)
    table = models.ForeignKey(
        Table,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    # --- Delivery ---
    delivery_street = models.CharField(max_length=200, blank=True)
    delivery_city = models.CharField(max_length=50, blank=True)
    delivery_postal_code = models.CharField(max_length=10, blank=True)
    delivery_phone = models.CharField(max_length=15, blank=True)
    delivery_notes = models.CharField(max_length=500, blank=True)

    order_notes = models.TextField(blank=True)

    # --- Lifecycle timestamps ---
    estimated_delivery_time = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="order_cust_created_idx"),
            models.Index(fields=["order_status", "-created_at"], name="order_status_created_idx"),
            models.Index(fields=["order_type", "order_status"], name="order_type_status_idx"),
            models.Index(fields=["table_number"], name="order_table_idx"),
            models.Index(fields=["payment_status", "order_status"], name="order_pay_status_idx"),
        ]

    def __str__(self):
        return f"Order {self.order_number or self.pk} ({self.order_type}) - {self.order_status}"

    @property
    def delivery_address(self):
        if self.order_type != self.OrderType.DELIVERY:
            return None
        return {
            "street": self.delivery_street,
            "city": self.delivery_city,
            "postal_code": self.delivery_postal_code,
            "phone": self.delivery_phone,
            "notes": self.delivery_notes,
        }

    @property
    def is_terminal(self):
        return self.order_status in (
            self.OrderStatus.DELIVERED,
            self.OrderStatus.CANCELLED,
        )

    def verify_totals(self):
        """
        Return True when every line subtotal and the order total agree with
        the stored unit prices and quantities.
        """
        from .calculators import OrderCalculator

        items = list(self.items.all())
        for item in items:
            if item.subtotal != OrderCalculator.line_subtotal(item.unit_price, item.quantity):
                return False
        return self.total_amount == OrderCalculator.order_total(item.subtotal for item in items)

    def save(self, *args, **kwargs):
        if self.order_number:
            super().save(*args, **kwargs)
            return

        max_retries = 5
        for _attempt in range(max_retries):
            self.order_number = self._generate_sequential_order_number()
            try:
                # Savepoint so a collision does not poison the outer transaction.
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                if not Order.objects.filter(order_number=self.order_number).exists():
                    self.order_number = ""
                    raise
                logger.info(f"Order number {self.order_number} already taken, retrying")
                self.order_number = ""
        raise IntegrityError("Failed to generate a unique order number after multiple retries.")

    def _generate_sequential_order_number(self):
        """Next number after the highest existing one, e.g. ``ORD-00042``."""
        prefix = getattr(settings, "ORDER_NUMBER_PREFIX", "ORD-")
        # Compare numerically: "ORD-100000" sorts before "ORD-99999" as text.
        highest = (
            Order.objects.filter(order_number__regex=rf"^{re.escape(prefix)}[0-9]+$")
            .annotate(sequence=Cast(Substr("order_number", len(prefix) + 1), IntegerField()))
            .aggregate(highest=Max("sequence"))["highest"]
        )
        return f"{prefix}{(highest or 0) + 1:05d}"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )

    # Snapshots taken when the order was placed
    name = models.CharField(max_length=200)
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text=_("Menu price at the time the order was placed."),
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")

    def __str__(self):
        return f"{self.quantity} x {self.name} in Order {self.order.order_number}"
