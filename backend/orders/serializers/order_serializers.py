from rest_framework import serializers

from orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    menu_item_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = OrderItem
        fields = ["menu_item_id", "name", "unit_price", "quantity", "subtotal"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full read representation; also the payload of the ``new-order`` event."""

    customer_id = serializers.IntegerField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    delivery_address = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "items",
            "total_amount",
            "order_type",
            "table_number",
            "delivery_address",
            "order_notes",
            "order_status",
            "payment_status",
            "payment_method",
            "estimated_delivery_time",
            "delivered_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_delivery_address(self, obj):
        return obj.delivery_address


# --- Request Serializers ---
# Shape checks only; business rules live in the services.


class DeliveryAddressSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    city = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    postal_code = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    phone = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderItemRequestSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, allow_null=True)


class OrderCreateSerializer(serializers.Serializer):
    order_type = serializers.CharField()
    items = OrderItemRequestSerializer(many=True, allow_empty=True)
    table_number = serializers.IntegerField(required=False, allow_null=True)
    delivery_address = DeliveryAddressSerializer(required=False, allow_null=True)
    order_notes = serializers.CharField(required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(required=False, default=Order.PaymentMethod.CASH.value)


class OrderListQuerySerializer(serializers.Serializer):
    """Validates the ``status`` / ``table_number`` query parameters of list views."""

    status = serializers.CharField(required=False, allow_blank=True)
    table_number = serializers.IntegerField(required=False, min_value=1)
