"""
Response Serializers for Marketplace API Documentation

These serializers define the structure of shared API responses for OpenAPI
schema generation. They are NOT used for data validation.
"""

from rest_framework import serializers

# ===== Common Response Serializers =====


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    detail = serializers.CharField(help_text="Human-readable error message")
    error = serializers.CharField(help_text="Error code identifier")


class SuccessResponseSerializer(serializers.Serializer):
    """Generic success response"""

    message = serializers.CharField(help_text="Success message")


class PaginatedResponseSerializer(serializers.Serializer):
    """Paginated list envelope"""

    count = serializers.IntegerField(help_text="Total number of rows")
    page = serializers.IntegerField(help_text="Current page number")
    page_size = serializers.IntegerField(help_text="Items per page")
    num_pages = serializers.IntegerField(help_text="Total number of pages")
    results = serializers.ListField(child=serializers.DictField(), help_text="Rows of the current page")
