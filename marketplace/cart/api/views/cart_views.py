from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.cart.api.serializers.cart_serializers import (
    AddCartItemRequestSerializer,
    CartOutputSerializer,
    UpdateCartItemRequestSerializer,
)
from marketplace.services import CartService


class CartViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CartService:
        # Inject CartService via DI container
        return container.cart_service()

    def render_cart(self, result, http_status=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result)
        return Response(CartOutputSerializer(result.value).data, status=http_status)

    @extend_schema(
        operation_id="cart_get",
        summary="Get user's shopping cart",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - Cart lines with price snapshot and subtotal
        - Subtotal, total and item count
        """,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Cart retrieved successfully"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    def list(self, request):
        return self.render_cart(self.get_service().get(request.user))

    @extend_schema(
        operation_id="cart_clear",
        summary="Empty the shopping cart",
        responses={
            204: OpenApiResponse(description="Cart cleared"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    def clear(self, request):
        result = self.get_service().clear(request.user)
        if not result.ok:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to add
        - `quantity` (integer, optional): Quantity to add (default: 1)

        Adding a product already in the cart increases the existing line.
        """,
        request=AddCartItemRequestSerializer,
        responses={
            201: OpenApiResponse(response=CartOutputSerializer, description="Item added successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Unavailable or insufficient stock"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Cart"],
    )
    def add_item(self, request):
        serializer = AddCartItemRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().add_item(
            request.user,
            serializer.validated_data["product_id"],
            serializer.validated_data["quantity"],
        )
        return self.render_cart(result, http_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="cart_update_item",
        summary="Update item quantity in cart",
        request=UpdateCartItemRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Item updated successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid quantity or insufficient stock"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Item belongs to another cart"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not found"),
        },
        tags=["Marketplace - Cart"],
    )
    def update_item(self, request, item_id=None):
        serializer = UpdateCartItemRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_item(request.user, item_id, serializer.validated_data["quantity"])
        return self.render_cart(result)

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Item removed successfully"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Item belongs to another cart"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not found"),
        },
        tags=["Marketplace - Cart"],
    )
    def remove_item(self, request, item_id=None):
        return self.render_cart(self.get_service().remove_item(request.user, item_id))
