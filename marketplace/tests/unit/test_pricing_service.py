from decimal import Decimal
from types import SimpleNamespace

import pytest

from marketplace.cart.domain.services.pricing_service import PricingService, to_money
from marketplace.services.base import ErrorCodes


def line(price, quantity):
    return SimpleNamespace(price=Decimal(price), quantity=quantity)


@pytest.mark.unit
class TestPricingServiceUnit:
    def setup_method(self):
        self.service = PricingService()

    def test_line_subtotal_rounds_to_cents(self):
        assert self.service.line_subtotal(Decimal("19.999"), 1) == Decimal("20.00")
        assert self.service.line_subtotal(Decimal("100.00"), 3) == Decimal("300.00")

    def test_cart_totals_single_line(self):
        result = self.service.calculate_cart_totals([line("100.00", 3)])

        assert result.ok
        assert result.value["subtotal"] == Decimal("300.00")
        assert result.value["total"] == Decimal("300.00")
        assert result.value["items_count"] == 1

    def test_cart_totals_sum_of_lines(self):
        result = self.service.calculate_cart_totals([line("10.50", 2), line("3.25", 4)])

        assert result.ok
        assert result.value["subtotal"] == Decimal("34.00")
        assert result.value["total"] == result.value["subtotal"]

    def test_cart_totals_empty(self):
        result = self.service.calculate_cart_totals([])

        assert result.ok
        assert result.value["subtotal"] == Decimal("0.00")
        assert result.value["items_count"] == 0

    def test_cart_totals_rejects_non_positive_quantity(self):
        result = self.service.calculate_cart_totals([line("10.00", 0)])

        assert not result.ok
        assert result.error == ErrorCodes.INVALID_QUANTITY

    def test_order_totals_add_shipping_and_tax(self):
        result = self.service.calculate_order_totals(
            [line("50.00", 2)], shipping_cost=Decimal("15"), tax=Decimal("16.00")
        )

        assert result.ok
        assert result.value["subtotal"] == Decimal("100.00")
        assert result.value["total"] == Decimal("131.00")

    def test_order_totals_default_to_subtotal(self):
        result = self.service.calculate_order_totals([line("25.00", 1)])

        assert result.ok
        assert result.value["shipping_cost"] == Decimal("0.00")
        assert result.value["tax"] == Decimal("0.00")
        assert result.value["total"] == Decimal("25.00")

    def test_to_money_half_up(self):
        assert to_money("0.005") == Decimal("0.01")
        assert to_money(Decimal("2.344")) == Decimal("2.34")
