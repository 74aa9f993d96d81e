from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from marketplace.catalog.domain.models.catalog import Product


User = get_user_model()

RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]


class ProductReview(models.Model):
    order = models.ForeignKey("marketplace.Order", on_delete=models.CASCADE, related_name="product_reviews")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="reviews")
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="product_reviews")
    rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    comment = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)
    is_verified_purchase = models.BooleanField(default=False)
    helpful_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["order", "reviewer", "product"],
                name="unique_product_review_per_order",
            )
        ]
        ordering = ["-created_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.product.name} - {self.rating} stars by {self.reviewer_id}"


class SupplierReview(models.Model):
    order = models.ForeignKey("marketplace.Order", on_delete=models.CASCADE, related_name="supplier_reviews")
    supplier = models.ForeignKey("marketplace.SupplierProfile", on_delete=models.CASCADE, related_name="reviews")
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="supplier_reviews")
    product_quality_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    delivery_speed_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    communication_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    overall_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["order", "reviewer", "supplier"],
                name="unique_supplier_review_per_order",
            )
        ]
        ordering = ["-created_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.supplier.company_name} - {self.overall_rating} stars by {self.reviewer_id}"


class ReviewReply(models.Model):
    """A supplier's public answer to a product review. At most one per review."""

    review = models.OneToOneField(ProductReview, on_delete=models.CASCADE, related_name="reply")
    supplier = models.ForeignKey("marketplace.SupplierProfile", on_delete=models.CASCADE, related_name="review_replies")
    reply = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"

    def __str__(self):
        return f"Reply to review {self.review_id}"
