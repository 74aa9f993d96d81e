"""
StockService - Supplier Stock and Price Management

Supplier-facing product mutations. Stock and price changes are checked
against product ownership, written atomically and recorded in the
activity log. Price changes are pushed into every cart holding the product.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q, Sum

from activity.services import ActivityLogService
from marketplace import policies
from marketplace.cart.domain.services.cart_service import CartService
from marketplace.cart.domain.services.inventory_service import InventoryService
from marketplace.cart.domain.services.pricing_service import PricingService, to_money
from marketplace.catalog.domain.models.catalog import Product
from marketplace.ordering.domain import state_machine
from marketplace.ordering.domain.models.order import Order
from marketplace.services.base import BaseService, ErrorCodes, ServiceAbort, ServiceResult, service_err, service_ok
from marketplace.suppliers.domain.models.supplier import SupplierProfile
from marketplace.suppliers.domain.snapshots import StockStatus


User = get_user_model()
logger = logging.getLogger(__name__)


def low_stock_threshold() -> int:
    return getattr(settings, "LOW_STOCK_THRESHOLD", 10)


class StockService(BaseService):
    """
    Service for supplier stock, price and dashboard operations.

    Dependencies:
    - InventoryService: stock ledger writes
    - PricingService: money rounding
    - ActivityLogService: audit trail
    - CartService: price propagation into open carts
    """

    def __init__(
        self,
        inventory_service: InventoryService = None,
        pricing_service: PricingService = None,
        activity_service: ActivityLogService = None,
        cart_service: CartService = None,
    ):
        super().__init__()
        self.inventory_service = inventory_service or InventoryService()
        self.pricing_service = pricing_service or PricingService()
        self.activity_service = activity_service or ActivityLogService()
        self.cart_service = cart_service or CartService(self.inventory_service, self.pricing_service)

    @BaseService.log_performance
    def update_stock(self, product_id, new_quantity: int, actor: User) -> ServiceResult[StockStatus]:
        """
        Set the stock level of a product owned by the actor.

        Returns:
            ServiceResult with the resulting StockStatus
        """
        if not isinstance(new_quantity, int) or isinstance(new_quantity, bool) or new_quantity < 0:
            return service_err(ErrorCodes.INVALID_INPUT, "Stock quantity must be a non-negative integer")

        try:
            with transaction.atomic():
                product = self._managed_product(product_id, actor)

                result = self.inventory_service.set_stock(product.id, new_quantity)
                if not result.ok:
                    raise ServiceAbort(result)
                change = result.value

                self.activity_service.log_activity(
                    action="product_stock_updated",
                    resource="product",
                    resource_id=product.id,
                    user=actor,
                    metadata={"old_stock": change["old_stock"], "new_stock": change["new_stock"]},
                )

                status = StockStatus(
                    product_id=product.id,
                    quantity=change["new_stock"],
                    is_available=change["is_available"],
                    low_stock_threshold=low_stock_threshold(),
                )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error updating stock for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        if status.is_low_stock:
            self.logger.warning(f"Product {product_id} is low on stock: {status.quantity} left")
        return service_ok(status)

    @BaseService.log_performance
    def get_stock_status(self, product_id) -> ServiceResult[StockStatus]:
        try:
            product = Product.objects.get(id=product_id)
        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        return service_ok(StockStatus.from_model(product, low_stock_threshold()))

    @BaseService.log_performance
    def update_price(self, product_id, new_price, actor: User) -> ServiceResult[Dict]:
        """
        Change a product's price and reprice every cart line holding it.

        Returns:
            ServiceResult with {"product_id", "old_price", "new_price", "carts_updated"}
        """
        try:
            new_price = to_money(Decimal(str(new_price)))
        except (InvalidOperation, TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_INPUT, "Price must be a decimal number")
        if new_price < 0:
            return service_err(ErrorCodes.INVALID_INPUT, "Price cannot be negative")

        try:
            with transaction.atomic():
                product = self._managed_product(product_id, actor, lock=True)

                old_price = product.price
                product.price = new_price
                product.save(update_fields=["price", "updated_at"])

                carts_updated = self.cart_service.reprice_product(product.id, new_price)

                self.activity_service.log_activity(
                    action="product_price_updated",
                    resource="product",
                    resource_id=product.id,
                    user=actor,
                    metadata={"old_price": old_price, "new_price": new_price, "carts_updated": carts_updated},
                )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error updating price for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Price for product {product_id}: {old_price} -> {new_price}")
        return service_ok(
            {
                "product_id": product.id,
                "old_price": old_price,
                "new_price": new_price,
                "carts_updated": carts_updated,
            }
        )

    @BaseService.log_performance
    def get_supplier_stats(self, supplier_user: User) -> ServiceResult[Dict]:
        """
        Dashboard figures for the supplier of ``supplier_user``.

        Revenue only counts delivered orders.
        """
        try:
            supplier = SupplierProfile.objects.get(user=supplier_user)
        except SupplierProfile.DoesNotExist:
            return service_err(ErrorCodes.SUPPLIER_NOT_FOUND, "Supplier profile not found")

        threshold = low_stock_threshold()
        products = Product.objects.filter(supplier=supplier).aggregate(
            total=Count("id"),
            available=Count("id", filter=Q(is_available=True)),
            out_of_stock=Count("id", filter=Q(stock_quantity=0)),
            low_stock=Count("id", filter=Q(stock_quantity__gt=0, stock_quantity__lte=threshold)),
        )

        orders = Order.objects.filter(supplier=supplier)
        by_status = {status: 0 for status in state_machine.ALL_STATUSES}
        for row in orders.values("status").annotate(count=Count("id")):
            by_status[row["status"]] = row["count"]

        revenue = orders.filter(status=Order.STATUS_DELIVERED).aggregate(total=Sum("total"))["total"]

        return service_ok(
            {
                "supplier_id": supplier.id,
                "company_name": supplier.company_name,
                "products": products,
                "orders": {"total": sum(by_status.values()), "by_status": by_status},
                "revenue": to_money(revenue or Decimal("0")),
                "rating": supplier.rating,
                "total_reviews": supplier.total_reviews,
            }
        )

    def _managed_product(self, product_id, actor: User, lock: bool = False) -> Product:
        queryset = Product.objects.select_for_update() if lock else Product.objects
        try:
            product = queryset.get(id=product_id)
        except Product.DoesNotExist:
            raise ServiceAbort(service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found"))

        if not policies.can_manage_product(actor, product):
            raise ServiceAbort(service_err(ErrorCodes.NOT_PRODUCT_OWNER, "You can only manage your own products"))
        return product
