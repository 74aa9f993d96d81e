from unittest.mock import MagicMock, Mock, patch

import pytest

from marketplace.cart.domain.services.inventory_service import InventoryService
from marketplace.models import Product
from marketplace.services.base import ErrorCodes

PRODUCT_OBJECTS = "marketplace.cart.domain.services.inventory_service.Product.objects"


@pytest.mark.unit
class TestInventoryServiceUnit:
    def setup_method(self):
        self.service = InventoryService()
        self.product_id = "test-product-id"

    def make_product(self, stock, available=True):
        product = Mock(spec=Product)
        product.id = self.product_id
        product.name = "Test Product"
        product.stock_quantity = stock
        product.is_available = available
        return product

    def test_validate_purchase_success(self):
        product = self.make_product(10)

        result = self.service.validate_purchase(product, 5)

        assert result.ok
        assert result.value is product

    def test_validate_purchase_unavailable(self):
        result = self.service.validate_purchase(self.make_product(10, available=False), 1)

        assert not result.ok
        assert result.error == ErrorCodes.PRODUCT_UNAVAILABLE

    def test_validate_purchase_insufficient(self):
        result = self.service.validate_purchase(self.make_product(3), 5)

        assert not result.ok
        assert result.error == ErrorCodes.INSUFFICIENT_STOCK

    def test_validate_purchase_rejects_zero(self):
        result = self.service.validate_purchase(self.make_product(3), 0)

        assert not result.ok
        assert result.error == ErrorCodes.INVALID_QUANTITY

    @patch(f"{PRODUCT_OBJECTS}.filter")
    def test_decrement_stock_lost_race(self, mock_filter):
        mock_filter.return_value.update.return_value = 0

        result = self.service.decrement_stock(self.product_id, 2)

        assert not result.ok
        assert result.error == ErrorCodes.INSUFFICIENT_STOCK
        mock_filter.assert_called_once_with(id=self.product_id, stock_quantity__gte=2)

    @patch(f"{PRODUCT_OBJECTS}.values_list")
    @patch(f"{PRODUCT_OBJECTS}.filter")
    def test_decrement_stock_success(self, mock_filter, mock_values_list):
        mock_filter.return_value.update.return_value = 1
        mock_values_list.return_value.get.return_value = 8

        result = self.service.decrement_stock(self.product_id, 2)

        assert result.ok
        assert result.value == 8

    @pytest.mark.django_db
    @patch(f"{PRODUCT_OBJECTS}.select_for_update")
    def test_set_stock_to_zero_marks_unavailable(self, mock_select_for_update):
        product = self.make_product(5)
        mock_queryset = MagicMock()
        mock_queryset.get.return_value = product
        mock_select_for_update.return_value = mock_queryset

        result = self.service.set_stock(self.product_id, 0)

        assert result.ok
        assert result.value == {"product_id": self.product_id, "old_stock": 5, "new_stock": 0, "is_available": False}
        product.save.assert_called_once()

    @pytest.mark.django_db
    @patch(f"{PRODUCT_OBJECTS}.select_for_update")
    def test_set_stock_keeps_explicit_unavailable_above_zero(self, mock_select_for_update):
        product = self.make_product(5, available=False)
        mock_queryset = MagicMock()
        mock_queryset.get.return_value = product
        mock_select_for_update.return_value = mock_queryset

        result = self.service.set_stock(self.product_id, 12)

        assert result.ok
        assert result.value["is_available"] is False

    def test_set_stock_rejects_negative(self):
        result = self.service.set_stock(self.product_id, -1)

        assert not result.ok
        assert result.error == ErrorCodes.INVALID_QUANTITY
