"""
PricingService - Price Calculations

Cart and order totals. All calculations use Decimal for precision
(no floating point errors) and round half up to cents.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class PricingService(BaseService):
    """
    Service for calculating line subtotals, cart totals and order totals.

    Line items are any objects exposing ``price`` and ``quantity``
    (CartItem, OrderItem or their snapshots).

    Shipping and tax are not charged yet: order totals are computed with
    both set to zero unless a caller passes them explicitly.
    """

    def line_subtotal(self, price, quantity: int) -> Decimal:
        """price * quantity, rounded to cents."""
        return to_money(Decimal(str(price)) * quantity)

    @BaseService.log_performance
    def calculate_cart_totals(self, items: Iterable) -> ServiceResult[Dict[str, Decimal]]:
        """
        Calculate totals for a shopping cart.

        Returns:
            ServiceResult with {"subtotal", "total", "items_count"}; total == subtotal

        Example:
            >>> result = pricing_service.calculate_cart_totals(cart.items.all())
            >>> result.value["total"]
            Decimal('300.00')
        """
        subtotal = ZERO
        items_count = 0
        for item in items:
            if item.quantity <= 0:
                return service_err(ErrorCodes.INVALID_QUANTITY, f"Invalid quantity: {item.quantity}")
            subtotal += self.line_subtotal(item.price, item.quantity)
            items_count += 1

        subtotal = to_money(subtotal)
        return service_ok({"subtotal": subtotal, "total": subtotal, "items_count": items_count})

    @BaseService.log_performance
    def calculate_order_totals(
        self,
        items: Iterable,
        shipping_cost: Decimal = ZERO,
        tax: Decimal = ZERO,
    ) -> ServiceResult[Dict[str, Decimal]]:
        """
        Calculate totals for one order: total = subtotal + shipping_cost + tax.

        Returns:
            ServiceResult with {"subtotal", "shipping_cost", "tax", "total", "items_count"}
        """
        cart_result = self.calculate_cart_totals(items)
        if not cart_result.ok:
            return cart_result

        subtotal = cart_result.value["subtotal"]
        shipping_cost = to_money(shipping_cost)
        tax = to_money(tax)
        total = to_money(subtotal + shipping_cost + tax)

        self.logger.info(f"Order total calculated: items={cart_result.value['items_count']}, total={total}")

        return service_ok(
            {
                "subtotal": subtotal,
                "shipping_cost": shipping_cost,
                "tax": tax,
                "total": total,
                "items_count": cart_result.value["items_count"],
            }
        )
