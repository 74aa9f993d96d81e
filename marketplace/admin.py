from django.contrib import admin

from .models import (
    Cart, CartItem, NotificationOutbox, Order, OrderItem, Product, ProductImage,
    ProductReview, ReviewReply, SupplierProfile, SupplierReview
)


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 1
    fields = ('image_url', 'thumbnail_url', 'alt_text', 'order')


class ProductReviewInline(admin.TabularInline):
    model = ProductReview
    extra = 0
    fields = ('reviewer', 'rating', 'is_verified_purchase', 'created_at')
    readonly_fields = ('reviewer', 'rating', 'is_verified_purchase', 'created_at')


@admin.register(SupplierProfile)
class SupplierProfileAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'user', 'city', 'is_verified', 'rating', 'total_reviews')
    list_filter = ('is_verified', 'state')
    search_fields = ('company_name', 'user__email')
    readonly_fields = ('rating', 'total_reviews', 'created_at', 'updated_at')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'supplier', 'category', 'price', 'stock_quantity', 'is_available', 'rating')
    list_filter = ('is_available', 'category', 'created_at')
    search_fields = ('name', 'description', 'brand', 'model', 'supplier__company_name')
    readonly_fields = ('id', 'rating', 'total_reviews', 'created_at', 'updated_at')
    inlines = [ProductImageInline, ProductReviewInline]


@admin.register(ProductReview)
class ProductReviewAdmin(admin.ModelAdmin):
    list_display = ('product', 'reviewer', 'rating', 'is_verified_purchase', 'created_at')
    list_filter = ('rating', 'is_verified_purchase', 'created_at')
    search_fields = ('product__name', 'reviewer__email', 'comment')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(SupplierReview)
class SupplierReviewAdmin(admin.ModelAdmin):
    list_display = ('supplier', 'reviewer', 'overall_rating', 'created_at')
    list_filter = ('overall_rating', 'created_at')
    search_fields = ('supplier__company_name', 'reviewer__email', 'comment')
    readonly_fields = ('overall_rating', 'created_at', 'updated_at')


@admin.register(ReviewReply)
class ReviewReplyAdmin(admin.ModelAdmin):
    list_display = ('review', 'supplier', 'created_at', 'updated_at')
    search_fields = ('reply', 'supplier__company_name')


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'product_name', 'quantity', 'price', 'subtotal')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'user', 'supplier', 'status', 'payment_status', 'total', 'created_at')
    list_filter = ('status', 'payment_status', 'payment_method', 'created_at')
    search_fields = ('order_number', 'user__email', 'supplier__company_name', 'tracking_number')
    readonly_fields = (
        'id', 'order_number', 'created_at', 'updated_at', 'confirmed_at',
        'shipped_at', 'delivered_at', 'cancelled_at'
    )
    inlines = [OrderItemInline]


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ('price', 'subtotal')


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ('user', 'subtotal', 'total', 'currency', 'updated_at')
    search_fields = ('user__email',)
    readonly_fields = ('subtotal', 'total', 'created_at', 'updated_at')
    inlines = [CartItemInline]


@admin.register(NotificationOutbox)
class NotificationOutboxAdmin(admin.ModelAdmin):
    list_display = ('notification_type', 'recipient', 'status', 'attempts', 'created_at', 'sent_at')
    list_filter = ('status', 'notification_type')
    search_fields = ('recipient__email', 'last_error')
    readonly_fields = ('created_at', 'sent_at', 'attempts', 'last_error')
