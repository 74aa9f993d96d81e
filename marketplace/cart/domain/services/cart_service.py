"""
CartService - Shopping Cart Operations

Per-user cart: add, update, remove and clear line items. Stock is validated
through InventoryService and totals are recomputed through PricingService
after every mutation, so that total == subtotal == sum(item.subtotal).
"""

import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import transaction

from marketplace.cart.domain.models.cart import Cart, CartItem
from marketplace.cart.domain.snapshots import CartSnapshot
from marketplace.catalog.domain.models.catalog import Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

from .inventory_service import InventoryService
from .pricing_service import PricingService

User = get_user_model()
logger = logging.getLogger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CartService(BaseService):
    """
    Service for managing shopping cart operations.

    Responsibilities:
    - Get user's cart (created empty on first access)
    - Add items to cart (with stock validation)
    - Update item quantities and remove items
    - Clear cart
    - Keep cart totals in sync with its items

    Dependencies:
    - InventoryService: Check stock availability
    - PricingService: Calculate cart totals
    """

    def __init__(self, inventory_service: InventoryService = None, pricing_service: PricingService = None):
        """
        Initialize CartService.

        Args:
            inventory_service: Service for stock management (injected)
            pricing_service: Service for price calculations (injected)
        """
        super().__init__()
        self.inventory_service = inventory_service or InventoryService()
        self.pricing_service = pricing_service or PricingService()

    @BaseService.log_performance
    def get(self, user: User) -> ServiceResult[CartSnapshot]:
        """
        Get user's shopping cart with items and totals.

        Example:
            >>> result = cart_service.get(user)
            >>> if result.ok:
            ...     print(result.value.total, len(result.value.items))
        """
        try:
            cart, created = Cart.objects.get_or_create(user=user)
            if created:
                self.logger.info(f"Created empty cart for user {user.id}")
            return service_ok(CartSnapshot.from_model(cart))
        except Exception as e:
            self.logger.error(f"Error getting cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def add_item(self, user: User, product_id, quantity: int = 1) -> ServiceResult[CartSnapshot]:
        """
        Add a product to the cart, merging into an existing line for the same product.

        Stock is checked against the merged quantity.

        Returns:
            ServiceResult with the updated cart, or product_not_found /
            product_unavailable / insufficient_stock / invalid_quantity

        Example:
            >>> result = cart_service.add_item(user, product.id, quantity=2)
        """
        if not _is_positive_int(quantity):
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

        try:
            with transaction.atomic():
                try:
                    product = Product.objects.get(id=product_id)
                except Product.DoesNotExist:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

                cart, _ = Cart.objects.get_or_create(user=user)
                existing = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()
                requested = existing.quantity + quantity if existing else quantity

                check = self.inventory_service.validate_purchase(product, requested)
                if not check.ok:
                    return check

                if existing:
                    existing.quantity = requested
                    existing.price = product.price
                    existing.subtotal = self.pricing_service.line_subtotal(product.price, requested)
                    existing.save(update_fields=["quantity", "price", "subtotal", "updated_at"])
                    self.logger.info(f"Updated cart line for user {user.id}: {product.name} quantity -> {requested}")
                else:
                    CartItem.objects.create(
                        cart=cart,
                        product=product,
                        quantity=quantity,
                        price=product.price,
                        subtotal=self.pricing_service.line_subtotal(product.price, quantity),
                    )
                    self.logger.info(f"Added to cart for user {user.id}: {quantity}x {product.name}")

            # Item write and totals are separate writes
            cart = self.recalculate(cart)
            return service_ok(CartSnapshot.from_model(cart))

        except Exception as e:
            self.logger.error(f"Error adding to cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def update_item(self, user: User, item_id: int, quantity: int) -> ServiceResult[CartSnapshot]:
        """
        Set the quantity of a cart line owned by ``user``.

        Returns:
            ServiceResult with the updated cart, or cart_item_not_found /
            permission_denied / insufficient_stock / invalid_quantity
        """
        if not _is_positive_int(quantity):
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

        try:
            lookup = self._get_owned_item(user, item_id)
            if not lookup.ok:
                return lookup
            item = lookup.value

            product = item.product
            if product.stock_quantity < quantity:
                return service_err(
                    ErrorCodes.INSUFFICIENT_STOCK,
                    f"Insufficient stock for product {product.name}. Available: {product.stock_quantity}",
                )

            item.quantity = quantity
            item.price = product.price
            item.subtotal = self.pricing_service.line_subtotal(product.price, quantity)
            item.save(update_fields=["quantity", "price", "subtotal", "updated_at"])

            cart = self.recalculate(item.cart)
            self.logger.info(f"Cart item {item_id} for user {user.id} set to quantity {quantity}")
            return service_ok(CartSnapshot.from_model(cart))

        except Exception as e:
            self.logger.error(f"Error updating cart item {item_id} for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def remove_item(self, user: User, item_id: int) -> ServiceResult[CartSnapshot]:
        """
        Remove a cart line owned by ``user``.

        Returns:
            ServiceResult with the updated cart, or cart_item_not_found / permission_denied
        """
        try:
            lookup = self._get_owned_item(user, item_id)
            if not lookup.ok:
                return lookup
            item = lookup.value

            cart = item.cart
            product_name = item.product.name
            item.delete()

            cart = self.recalculate(cart)
            self.logger.info(f"Removed from cart for user {user.id}: {product_name}")
            return service_ok(CartSnapshot.from_model(cart))

        except Exception as e:
            self.logger.error(f"Error removing cart item {item_id} for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def clear(self, user: User) -> ServiceResult[bool]:
        """
        Delete every item and zero the totals. No-op if the user has no cart.

        Returns:
            ServiceResult with True if a cart was cleared, False if none existed
        """
        try:
            cart = Cart.objects.filter(user=user).first()
            if cart is None:
                return service_ok(False)

            with transaction.atomic():
                deleted, _ = cart.items.all().delete()
                cart.subtotal = Decimal("0.00")
                cart.total = Decimal("0.00")
                cart.save(update_fields=["subtotal", "total", "updated_at"])

            self.logger.info(f"Cleared cart for user {user.id}: {deleted} items removed")
            return service_ok(True)

        except Exception as e:
            self.logger.error(f"Error clearing cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def recalculate(self, cart: Cart) -> Cart:
        """Rewrite ``cart.subtotal`` and ``cart.total`` from its current items."""
        totals = self.pricing_service.calculate_cart_totals(cart.items.all())
        if not totals.ok:
            raise ValueError(f"Cannot total cart {cart.id}: {totals.error_detail}")

        cart.subtotal = totals.value["subtotal"]
        cart.total = totals.value["total"]
        cart.save(update_fields=["subtotal", "total", "updated_at"])
        return cart

    def reprice_product(self, product_id, new_price: Decimal) -> int:
        """
        Rewrite price and subtotal of every cart line holding ``product_id``
        and recompute the owning carts.

        Returns:
            Number of carts touched
        """
        items = list(CartItem.objects.select_related("cart").filter(product_id=product_id))
        for item in items:
            item.price = new_price
            item.subtotal = self.pricing_service.line_subtotal(new_price, item.quantity)
        CartItem.objects.bulk_update(items, ["price", "subtotal"])

        carts = {item.cart_id: item.cart for item in items}
        for cart in carts.values():
            self.recalculate(cart)

        self.logger.info(f"Repriced product {product_id} in {len(carts)} carts")
        return len(carts)

    def _get_owned_item(self, user: User, item_id: int) -> ServiceResult[CartItem]:
        try:
            item = CartItem.objects.select_related("cart", "product").get(id=item_id)
        except CartItem.DoesNotExist:
            return service_err(ErrorCodes.CART_ITEM_NOT_FOUND, f"Cart item {item_id} not found")

        if item.cart.user_id != user.pk:
            self.logger.warning(f"User {user.id} attempted to modify cart item {item_id} of another user")
            return service_err(ErrorCodes.PERMISSION_DENIED, "Cart item does not belong to user")

        return service_ok(item)
