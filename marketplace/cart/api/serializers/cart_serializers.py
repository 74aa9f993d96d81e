from rest_framework import serializers


class AddCartItemRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(help_text="Product to add")
    quantity = serializers.IntegerField(min_value=1, default=1, help_text="Quantity to add (default: 1)")


class UpdateCartItemRequestSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, help_text="New quantity")


class CartItemOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    supplier_id = serializers.IntegerField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    stock_quantity = serializers.IntegerField(read_only=True)


class CartOutputSerializer(serializers.Serializer):
    """Renders a CartSnapshot."""

    id = serializers.IntegerField(read_only=True, allow_null=True)
    user_id = serializers.UUIDField(read_only=True)
    items = CartItemOutputSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    currency = serializers.CharField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True, allow_null=True)
