from rest_framework import serializers


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Payload for ``PUT /orders/<id>/status/``.

    The status is kept as free text here so an unknown value reaches the
    lifecycle service and comes back as ``invalid_status``.
    """

    order_status = serializers.CharField(max_length=32)
    cancellation_reason = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=500
    )


class UpdatePaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.CharField(max_length=32)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=500
    )
