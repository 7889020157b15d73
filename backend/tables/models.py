from django.db import models
from django.utils.translation import gettext_lazy as _


class Table(models.Model):
    """A physical dining table; dine-in orders must reference an existing one."""

    class TableStatus(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        RESERVED = "reserved", _("Reserved")

    table_number = models.PositiveIntegerField(unique=True)
    capacity = models.PositiveIntegerField(default=4)
    status = models.CharField(
        max_length=10, choices=TableStatus.choices, default=TableStatus.AVAILABLE
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["table_number"]
        verbose_name = _("Table")
        verbose_name_plural = _("Tables")

    def __str__(self):
        return f"Table {self.table_number}"
