from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response, page_params, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer
from marketplace.ordering.api.serializers.order_serializers import (
    CancelOrderRequestSerializer,
    CreateOrderRequestSerializer,
    OrderOutputSerializer,
    TrackingInfoSerializer,
    TrackingRequestSerializer,
    UpdateOrderStatusRequestSerializer,
)
from marketplace.permissions import IsSupplier
from marketplace.services import OrderService

LIST_PARAMETERS = [
    OpenApiParameter(name="status", type=str, description="Filter by order status"),
    OpenApiParameter(name="page", type=int, description="Page number (default: 1)"),
    OpenApiParameter(name="page_size", type=int, description="Items per page (default: 20)"),
]


class OrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-f-]{36}"

    def get_service(self) -> OrderService:
        return container.order_service()

    def get_permissions(self):
        if self.action == "supplier_orders":
            return [IsAuthenticated(), IsSupplier()]
        return super().get_permissions()

    def render_order(self, result, http_status=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result)
        return Response(OrderOutputSerializer(result.value).data, status=http_status)

    def render_page(self, result):
        if not result.ok:
            return error_response(result)
        response_data = dict(result.value)
        response_data["results"] = OrderOutputSerializer(result.value["results"], many=True).data
        return Response(response_data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_list",
        summary="List user's orders (as customer)",
        description="""
        **What it receives:**
        - Authentication token
        - Optional status filter (query param)
        - Pagination parameters (page, page_size)

        **What it returns:**
        - Paginated list of the user's orders, newest first
        """,
        parameters=LIST_PARAMETERS,
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Orders retrieved successfully"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Orders"],
    )
    def list(self, request):
        page, page_size = page_params(request)
        result = self.get_service().list_user_orders(request.user, request.query_params.get("status"), page, page_size)
        return self.render_page(result)

    @extend_schema(
        operation_id="orders_supplier_list",
        summary="List orders received by the current supplier",
        parameters=LIST_PARAMETERS,
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Orders retrieved successfully"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a supplier"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Supplier profile not found"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=False, methods=["get"], url_path="supplier", url_name="supplier")
    def supplier_orders(self, request):
        page, page_size = page_params(request)
        result = self.get_service().list_supplier_orders(
            request.user, request.query_params.get("status"), page, page_size
        )
        return self.render_page(result)

    @extend_schema(
        operation_id="orders_create",
        summary="Checkout: create orders from the cart",
        description="""
        **What it receives:**
        - `shipping_address` (object): Delivery address
        - `billing_address` (object, optional)
        - `payment_method` (string): card, cash or transfer

        **What it returns:**
        - One order per supplier present in the cart, first supplier first
        - The cart is emptied and stock is decremented
        """,
        request=CreateOrderRequestSerializer,
        responses={
            201: OpenApiResponse(response=OrderOutputSerializer(many=True), description="Orders created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Empty cart or insufficient stock"),
        },
        tags=["Marketplace - Orders"],
    )
    def create(self, request):
        serializer = CreateOrderRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().create_order(
            request.user,
            shipping_address=data["shipping_address"],
            billing_address=data.get("billing_address"),
            payment_method=data["payment_method"],
        )
        if not result.ok:
            return error_response(result)

        return Response(OrderOutputSerializer(result.value, many=True).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        responses={
            200: OpenApiResponse(response=OrderOutputSerializer, description="Order retrieved successfully"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        return self.render_order(self.get_service().get_order(pk, request.user))

    @extend_schema(
        operation_id="orders_update_status",
        summary="Move an order along its status workflow",
        description="""
        pending -> confirmed -> preparing -> shipped -> delivered.
        Any non-terminal state before shipping may go to cancelled.
        Only the order's supplier drives fulfilment; either party may cancel.
        """,
        request=UpdateOrderStatusRequestSerializer,
        responses={
            200: OpenApiResponse(response=OrderOutputSerializer, description="Status updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid status transition"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not allowed for this order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["put"], url_path="status", url_name="status")
    def update_status(self, request, pk=None):
        serializer = UpdateOrderStatusRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().update_status(
            pk,
            request.user,
            data["status"],
            tracking_number=data.get("tracking_number") or None,
            carrier=data.get("carrier") or None,
        )
        return self.render_order(result)

    @extend_schema(
        operation_id="orders_cancel",
        summary="Cancel an order",
        description="Allowed while the order is pending, confirmed or preparing. Stock is restored.",
        request=CancelOrderRequestSerializer,
        responses={
            200: OpenApiResponse(response=OrderOutputSerializer, description="Order cancelled"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Order cannot be cancelled"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["put"])
    def cancel(self, request, pk=None):
        serializer = CancelOrderRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        return self.render_order(self.get_service().cancel_order(pk, request.user, serializer.validated_data["reason"]))

    @extend_schema(
        methods=["GET"],
        operation_id="orders_tracking_get",
        summary="Get tracking information",
        responses={
            200: OpenApiResponse(response=TrackingInfoSerializer, description="Tracking info"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="orders_tracking_add",
        summary="Add tracking information and mark the order shipped",
        request=TrackingRequestSerializer,
        responses={
            200: OpenApiResponse(response=OrderOutputSerializer, description="Order shipped"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Order is not confirmed or preparing"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the order's supplier"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["get", "post"])
    def tracking(self, request, pk=None):
        service = self.get_service()

        if request.method == "GET":
            result = service.get_tracking_info(pk, request.user)
            if not result.ok:
                return error_response(result)
            return Response(TrackingInfoSerializer(result.value).data, status=status.HTTP_200_OK)

        serializer = TrackingRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = service.add_tracking_info(
            pk,
            request.user,
            serializer.validated_data["tracking_number"],
            serializer.validated_data["carrier"],
        )
        return self.render_order(result)
