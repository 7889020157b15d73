from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class MenuItem(models.Model):
    """
    A dish that customers can order.

    Menu management happens elsewhere; the order lifecycle only reads the
    current ``price`` and ``is_available`` flag when an order is placed.
    """

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unavailable items cannot be added to new orders."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = _("Menu Item")
        verbose_name_plural = _("Menu Items")
        indexes = [
            models.Index(fields=["is_available"], name="menuitem_available_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.price})"
