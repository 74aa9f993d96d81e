from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import models

from marketplace.catalog.domain.models.catalog import Product


User = get_user_model()


class Cart(models.Model):
    """
    One cart per user.

    ``subtotal`` and ``total`` are derived from the items and rewritten after
    every item mutation: total == subtotal == sum(item.subtotal).
    """

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="cart")
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shopping Cart"
        verbose_name_plural = "Shopping Carts"
        app_label = "marketplace"

    def __str__(self):
        return f"Cart for {self.user_id}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_items")
    quantity = models.PositiveIntegerField(default=1)
    # Unit price captured when the item was added; rewritten on price changes
    price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ["cart", "product"]
        ordering = ["added_at", "id"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.quantity}x {self.product.name} in cart {self.cart_id}"
