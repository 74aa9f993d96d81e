from rest_framework import serializers

from marketplace.ordering.domain import state_machine
from marketplace.ordering.domain.models.order import Order


class CreateOrderRequestSerializer(serializers.Serializer):
    shipping_address = serializers.DictField(help_text="Delivery address (street, city, state, postal_code, ...)")
    billing_address = serializers.DictField(required=False, allow_null=True, help_text="Billing address")
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default="card")

    def validate_shipping_address(self, value):
        if not value:
            raise serializers.ValidationError("Shipping address is required")
        return value


class UpdateOrderStatusRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=state_machine.ALL_STATUSES, help_text="Target status")
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=100)
    carrier = serializers.CharField(required=False, allow_blank=True, max_length=100)


class CancelOrderRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", help_text="Cancellation reason")


class TrackingRequestSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100)
    carrier = serializers.CharField(max_length=100)


class OrderItemOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    product_image = serializers.CharField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class OrderOutputSerializer(serializers.Serializer):
    """Renders an OrderSnapshot."""

    id = serializers.UUIDField(read_only=True)
    order_number = serializers.CharField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    supplier_id = serializers.IntegerField(read_only=True)
    status = serializers.CharField(read_only=True)
    payment_status = serializers.CharField(read_only=True)
    payment_method = serializers.CharField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    tax = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.CharField(read_only=True)
    shipping_address = serializers.DictField(read_only=True)
    billing_address = serializers.DictField(read_only=True, allow_null=True)
    tracking_number = serializers.CharField(read_only=True)
    carrier = serializers.CharField(read_only=True)
    estimated_delivery = serializers.DateTimeField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True, allow_null=True)
    confirmed_at = serializers.DateTimeField(read_only=True, allow_null=True)
    shipped_at = serializers.DateTimeField(read_only=True, allow_null=True)
    delivered_at = serializers.DateTimeField(read_only=True, allow_null=True)
    cancelled_at = serializers.DateTimeField(read_only=True, allow_null=True)
    cancellation_reason = serializers.CharField(read_only=True)
    items = OrderItemOutputSerializer(many=True, read_only=True)


class TrackingInfoSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(read_only=True)
    order_number = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    tracking_number = serializers.CharField(read_only=True)
    carrier = serializers.CharField(read_only=True)
    shipped_at = serializers.DateTimeField(read_only=True, allow_null=True)
    delivered_at = serializers.DateTimeField(read_only=True, allow_null=True)
    estimated_delivery = serializers.DateTimeField(read_only=True, allow_null=True)
