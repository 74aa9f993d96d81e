from django.contrib.auth import get_user_model
from django.db import models


User = get_user_model()


class SupplierProfile(models.Model):
    """Business profile of a user with the supplier role."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="supplier_profile")
    company_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    is_verified = models.BooleanField(default=False)

    # Aggregated from SupplierReview.overall_rating
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_reviews = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["company_name"]
        app_label = "marketplace"

    def __str__(self):
        return self.company_name
