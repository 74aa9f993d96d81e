from rest_framework import serializers


class UpdateStockRequestSerializer(serializers.Serializer):
    stock_quantity = serializers.IntegerField(min_value=0, help_text="New stock level")


class UpdatePriceRequestSerializer(serializers.Serializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, help_text="New unit price")


class StockStatusSerializer(serializers.Serializer):
    """Renders a StockStatus."""

    product_id = serializers.UUIDField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    low_stock_threshold = serializers.IntegerField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
