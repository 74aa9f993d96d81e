"""
InventoryService - Stock Management

Product stock ledger: availability checks, conditional decrements at
checkout, restocks on cancellation and direct stock updates by suppliers.

Invariant kept by every mutation here: a product with zero stock is
never available. Restocking a product from zero makes it available again.
"""

import logging

from django.db.models import F

from marketplace.catalog.domain.models.catalog import Product
from marketplace.infra.observability.metrics import stock_decrement_failures
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

logger = logging.getLogger(__name__)


class InventoryService(BaseService):
    """
    Service for reading and mutating product stock.

    Methods that write expect to run inside the caller's transaction.
    """

    def validate_purchase(self, product: Product, quantity: int) -> ServiceResult[Product]:
        """
        Check that ``quantity`` units of an already loaded product can be bought.

        Returns:
            ServiceResult with the product, or product_unavailable / insufficient_stock
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

        if not product.is_available:
            return service_err(ErrorCodes.PRODUCT_UNAVAILABLE, f"Product {product.name} is not available")

        if product.stock_quantity < quantity:
            return service_err(
                ErrorCodes.INSUFFICIENT_STOCK,
                f"Insufficient stock for product {product.name}. "
                f"Available: {product.stock_quantity}, Requested: {quantity}",
            )

        return service_ok(product)

    @BaseService.log_performance
    def decrement_stock(self, product_id, quantity: int) -> ServiceResult[int]:
        """
        Remove ``quantity`` units with a single conditional UPDATE.

        The row only changes when it still holds at least ``quantity`` units,
        so concurrent checkouts can never drive stock below zero. A product
        that reaches zero is marked unavailable.

        Returns:
            ServiceResult with the remaining stock, or insufficient_stock when
            the conditional update matched no row
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

        updated = Product.objects.filter(id=product_id, stock_quantity__gte=quantity).update(
            stock_quantity=F("stock_quantity") - quantity
        )
        if updated == 0:
            stock_decrement_failures.inc()
            self.logger.warning(f"Conditional stock decrement lost for product {product_id}: requested={quantity}")
            return service_err(
                ErrorCodes.INSUFFICIENT_STOCK,
                f"Insufficient stock for product {product_id}. Requested: {quantity}",
            )

        Product.objects.filter(id=product_id, stock_quantity=0).update(is_available=False)
        remaining = Product.objects.values_list("stock_quantity", flat=True).get(id=product_id)

        self.logger.info(f"Stock decremented for product {product_id}: -{quantity}, remaining={remaining}")
        return service_ok(remaining)

    @BaseService.log_performance
    def restore_stock(self, product_id, quantity: int) -> ServiceResult[int]:
        """
        Return ``quantity`` units to a product, re-enabling it if it was
        unavailable and now has stock.

        Returns:
            ServiceResult with the new stock level
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be a positive integer")

        updated = Product.objects.filter(id=product_id).update(stock_quantity=F("stock_quantity") + quantity)
        if updated == 0:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        Product.objects.filter(id=product_id, is_available=False, stock_quantity__gt=0).update(is_available=True)
        new_stock = Product.objects.values_list("stock_quantity", flat=True).get(id=product_id)

        self.logger.info(f"Stock restored for product {product_id}: +{quantity}, new_stock={new_stock}")
        return service_ok(new_stock)

    @BaseService.log_performance
    def set_stock(self, product_id, new_quantity: int) -> ServiceResult[dict]:
        """
        Overwrite the stock level of a product.

        Zero forces the product unavailable; going from zero to a positive
        level forces it available. Any other change leaves ``is_available``
        untouched, so an explicit "unavailable" set by the supplier survives.

        Returns:
            ServiceResult with {"product_id", "old_stock", "new_stock", "is_available"}
        """
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool) or new_quantity < 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Stock must be a non-negative integer")

        try:
            product = Product.objects.select_for_update().get(id=product_id)
        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        old_stock = product.stock_quantity
        product.stock_quantity = new_quantity
        if new_quantity == 0:
            product.is_available = False
        elif old_stock == 0:
            product.is_available = True
        product.save(update_fields=["stock_quantity", "is_available", "updated_at"])

        self.logger.info(
            f"Stock set for product {product_id}: {old_stock} -> {new_quantity}, available={product.is_available}"
        )
        return service_ok(
            {
                "product_id": product.id,
                "old_stock": old_stock,
                "new_stock": new_quantity,
                "is_available": product.is_available,
            }
        )
