from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.permissions import IsSupplier, IsSupplierOrAdmin
from marketplace.services import StockService
from marketplace.suppliers.api.serializers.stock_serializers import (
    StockStatusSerializer,
    UpdatePriceRequestSerializer,
    UpdateStockRequestSerializer,
)


class ProductStockViewSet(viewsets.ViewSet):
    """Stock and price management of a single product."""

    def get_service(self) -> StockService:
        return container.stock_service()

    def get_permissions(self):
        if self.action == "stock_status":
            return [AllowAny()]
        return [IsAuthenticated(), IsSupplierOrAdmin()]

    @extend_schema(
        operation_id="product_stock_get",
        summary="Get stock status of a product",
        responses={
            200: OpenApiResponse(response=StockStatusSerializer, description="Stock status"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Suppliers"],
    )
    def stock_status(self, request, product_id=None):
        result = self.get_service().get_stock_status(product_id)
        if not result.ok:
            return error_response(result)
        return Response(StockStatusSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="product_stock_update",
        summary="Set the stock level of one of your products",
        description="""
        Setting stock to 0 marks the product unavailable.
        Restocking a product from 0 makes it available again.
        """,
        request=UpdateStockRequestSerializer,
        responses={
            200: OpenApiResponse(response=StockStatusSerializer, description="Stock updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your product"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Suppliers"],
    )
    def update_stock(self, request, product_id=None):
        serializer = UpdateStockRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_stock(product_id, serializer.validated_data["stock_quantity"], request.user)
        if not result.ok:
            return error_response(result)
        return Response(StockStatusSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="product_price_update",
        summary="Change the price of one of your products",
        description="Every cart holding the product is repriced.",
        request=UpdatePriceRequestSerializer,
        responses={
            200: OpenApiResponse(description="Old/new price and number of carts repriced"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your product"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Suppliers"],
    )
    def update_price(self, request, product_id=None):
        serializer = UpdatePriceRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_price(product_id, serializer.validated_data["price"], request.user)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)


class SupplierDashboardViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsSupplier]

    def get_service(self) -> StockService:
        return container.stock_service()

    @extend_schema(
        operation_id="supplier_me_stats",
        summary="Dashboard figures for the current supplier",
        responses={
            200: OpenApiResponse(description="Product counts, order counts by status, delivered revenue and rating"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a supplier"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Supplier profile not found"),
        },
        tags=["Marketplace - Suppliers"],
    )
    def stats(self, request):
        result = self.get_service().get_supplier_stats(request.user)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)
