from marketplace.cart.domain.models import Cart, CartItem
from marketplace.catalog.domain.models import Product, ProductImage, ProductReview, ReviewReply, SupplierReview
from marketplace.notifications.domain.models import NotificationOutbox
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.suppliers.domain.models import SupplierProfile


__all__ = [
    "SupplierProfile",
    "Product",
    "ProductImage",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "ProductReview",
    "SupplierReview",
    "ReviewReply",
    "NotificationOutbox",
]
