from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response, page_params, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer
from marketplace.catalog.api.serializers.review_serializers import (
    CreateProductReviewRequestSerializer,
    CreateSupplierReviewRequestSerializer,
    ProductReviewSerializer,
    ReviewReplyRequestSerializer,
    ReviewReplySerializer,
    SupplierReviewSerializer,
    UpdateProductReviewRequestSerializer,
)
from marketplace.permissions import IsSupplier
from marketplace.services import ReviewService

PAGE_PARAMETERS = [
    OpenApiParameter(name="page", type=int, description="Page number (default: 1)"),
    OpenApiParameter(name="page_size", type=int, description="Items per page (default: 20)"),
]


def render_review_page(result, serializer_class):
    if not result.ok:
        return error_response(result)
    response_data = dict(result.value)
    response_data["results"] = serializer_class(result.value["results"], many=True).data
    return Response(response_data, status=status.HTTP_200_OK)


class ReviewServiceMixin:
    def get_service(self) -> ReviewService:
        return container.review_service()


class ProductReviewViewSet(ReviewServiceMixin, viewsets.ViewSet):
    """Reviews nested under a product."""

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated()]
        return [AllowAny()]

    @extend_schema(
        operation_id="product_reviews_list",
        summary="List reviews of a product",
        parameters=PAGE_PARAMETERS,
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Reviews with supplier replies"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def list(self, request, product_id=None):
        page, page_size = page_params(request)
        return render_review_page(
            self.get_service().list_product_reviews(product_id, page, page_size), ProductReviewSerializer
        )

    @extend_schema(
        operation_id="product_reviews_create",
        summary="Review a product from a delivered order",
        description="""
        **What it receives:**
        - `order_id` (UUID): Delivered order containing the product
        - `rating` (integer 1-5)
        - `comment` (string, optional), `images` (list of URLs, optional)

        One review per order and product.
        """,
        request=CreateProductReviewRequestSerializer,
        responses={
            201: OpenApiResponse(response=ProductReviewSerializer, description="Review created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Order not delivered or product not in order"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def create(self, request, product_id=None):
        serializer = CreateProductReviewRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().create_product_review(
            request.user,
            data["order_id"],
            product_id,
            data["rating"],
            data["comment"],
            data["images"],
        )
        if not result.ok:
            return error_response(result)
        return Response(ProductReviewSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="product_rating_stats",
        summary="Rating statistics of a product",
        responses={
            200: OpenApiResponse(description="Average, count, 1-5 distribution and verified purchase percentage"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def rating_stats(self, request, product_id=None):
        result = self.get_service().get_product_rating_stats(product_id)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)


class ReviewViewSet(ReviewServiceMixin, viewsets.ViewSet):
    """Author and supplier actions on a single product review."""

    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == "reply":
            return [IsAuthenticated(), IsSupplier()]
        return super().get_permissions()

    @extend_schema(
        operation_id="reviews_update",
        summary="Edit your review",
        request=UpdateProductReviewRequestSerializer,
        responses={
            200: OpenApiResponse(response=ProductReviewSerializer, description="Review updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your review"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Review not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def update(self, request, pk=None):
        serializer = UpdateProductReviewRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().update_product_review(
            pk,
            request.user,
            rating=data.get("rating"),
            comment=data.get("comment"),
            images=data.get("images"),
        )
        if not result.ok:
            return error_response(result)
        return Response(ProductReviewSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="reviews_delete",
        summary="Delete your review",
        responses={
            204: OpenApiResponse(description="Review deleted"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your review"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Review not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_product_review(pk, request.user)
        if not result.ok:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="reviews_reply",
        summary="Reply to a review of one of your products",
        description="A second reply replaces the first one.",
        request=ReviewReplyRequestSerializer,
        responses={
            200: OpenApiResponse(response=ReviewReplySerializer, description="Reply saved"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your product"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Review not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def reply(self, request, pk=None):
        serializer = ReviewReplyRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().reply_to_review(pk, request.user, serializer.validated_data["reply"])
        if not result.ok:
            return error_response(result)
        return Response(ReviewReplySerializer(result.value).data, status=status.HTTP_200_OK)


class SupplierReviewViewSet(ReviewServiceMixin, viewsets.ViewSet):
    """Reviews nested under a supplier."""

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated()]
        return [AllowAny()]

    @extend_schema(
        operation_id="supplier_reviews_list",
        summary="List reviews of a supplier",
        parameters=PAGE_PARAMETERS,
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Supplier reviews"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Supplier not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def list(self, request, supplier_id=None):
        page, page_size = page_params(request)
        return render_review_page(
            self.get_service().list_supplier_reviews(supplier_id, page, page_size), SupplierReviewSerializer
        )

    @extend_schema(
        operation_id="supplier_reviews_create",
        summary="Review the supplier of a delivered order",
        request=CreateSupplierReviewRequestSerializer,
        responses={
            201: OpenApiResponse(response=SupplierReviewSerializer, description="Review created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Order not delivered or wrong supplier"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def create(self, request, supplier_id=None):
        serializer = CreateSupplierReviewRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().create_supplier_review(
            request.user,
            data["order_id"],
            supplier_id,
            data["product_quality_rating"],
            data["delivery_speed_rating"],
            data["communication_rating"],
            data["comment"],
        )
        if not result.ok:
            return error_response(result)
        return Response(SupplierReviewSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="supplier_rating_stats",
        summary="Rating statistics of a supplier",
        responses={
            200: OpenApiResponse(description="Average and per-category averages"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Supplier not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def rating_stats(self, request, supplier_id=None):
        result = self.get_service().get_supplier_rating_stats(supplier_id)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)
