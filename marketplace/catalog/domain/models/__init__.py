from .catalog import Product, ProductImage
from .interaction import ProductReview, ReviewReply, SupplierReview


__all__ = [
    "Product",
    "ProductImage",
    "ProductReview",
    "SupplierReview",
    "ReviewReply",
]
