from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views.cart_views import CartViewSet
from .catalog.api.views.review_views import ProductReviewViewSet, ReviewViewSet, SupplierReviewViewSet
from .ordering.api.views.order_views import OrderViewSet
from .suppliers.api.views.supplier_views import ProductStockViewSet, SupplierDashboardViewSet

# Create the main router
router = DefaultRouter()
router.register(r"orders", OrderViewSet, basename="order")

app_name = "marketplace"

urlpatterns = [
    # Cart (single resource per user, manual routing)
    path("cart/", CartViewSet.as_view({"get": "list", "delete": "clear"}), name="cart"),
    path("cart/items/", CartViewSet.as_view({"post": "add_item"}), name="cart-items"),
    path(
        "cart/items/<int:item_id>/",
        CartViewSet.as_view({"put": "update_item", "delete": "remove_item"}),
        name="cart-item-detail",
    ),
    # Orders
    path("", include(router.urls)),
    # Product reviews and stock (nested under products)
    path(
        "products/<uuid:product_id>/reviews/",
        ProductReviewViewSet.as_view({"get": "list", "post": "create"}),
        name="product-reviews",
    ),
    path(
        "products/<uuid:product_id>/rating-stats/",
        ProductReviewViewSet.as_view({"get": "rating_stats"}),
        name="product-rating-stats",
    ),
    path(
        "products/<uuid:product_id>/stock/",
        ProductStockViewSet.as_view({"get": "stock_status", "put": "update_stock"}),
        name="product-stock",
    ),
    path(
        "products/<uuid:product_id>/price/",
        ProductStockViewSet.as_view({"put": "update_price"}),
        name="product-price",
    ),
    # Single review actions
    path("reviews/<int:pk>/", ReviewViewSet.as_view({"put": "update", "delete": "destroy"}), name="review-detail"),
    path("reviews/<int:pk>/reply/", ReviewViewSet.as_view({"post": "reply"}), name="review-reply"),
    # Suppliers
    path("suppliers/me/stats/", SupplierDashboardViewSet.as_view({"get": "stats"}), name="supplier-me-stats"),
    path(
        "suppliers/<int:supplier_id>/reviews/",
        SupplierReviewViewSet.as_view({"get": "list", "post": "create"}),
        name="supplier-reviews",
    ),
    path(
        "suppliers/<int:supplier_id>/rating-stats/",
        SupplierReviewViewSet.as_view({"get": "rating_stats"}),
        name="supplier-rating-stats",
    ),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.marketplace_prometheus_metrics, name="marketplace-metrics"),
]
