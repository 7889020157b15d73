from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("menu_item", "name", "unit_price", "quantity", "subtotal", "position")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly admin for orders. Status changes belong to the API so that
    transitions are validated and broadcast.
    """

    list_display = (
        "order_number",
        "customer",
        "order_type",
        "order_status",
        "payment_status",
        "total_amount",
        "created_at",
    )
    list_filter = ("order_status", "payment_status", "order_type", "created_at")
    search_fields = ("order_number", "customer__email")
    readonly_fields = (
        "order_number",
        "customer",
        "total_amount",
        "order_status",
        "payment_status",
        "estimated_delivery_time",
        "delivered_at",
        "cancelled_at",
        "cancellation_reason",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline]
    ordering = ("-created_at",)

    def has_delete_permission(self, request, obj=None):
        return False
