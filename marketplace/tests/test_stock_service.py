from decimal import Decimal

from django.test import TestCase, override_settings

from activity.models import ActivityLog
from infrastructure.container import container
from marketplace.models import Cart, CartItem, Order, Product
from marketplace.services import ErrorCodes
from marketplace.tests.factories import (
    AdminFactory,
    CartItemFactory,
    DeliveredOrderFactory,
    OrderFactory,
    ProductFactory,
    SupplierProfileFactory,
    UserFactory,
)


class StockServiceTestBase(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = container.stock_service()
        self.supplier = SupplierProfileFactory()
        self.product = ProductFactory(supplier=self.supplier, stock_quantity=20, price=Decimal("100.00"))

    def tearDown(self):
        container.reset()


@override_settings(LOW_STOCK_THRESHOLD=10)
class UpdateStockTest(StockServiceTestBase):
    def test_zero_stock_makes_product_unavailable(self):
        result = self.service.update_stock(self.product.id, 0, self.supplier.user)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.quantity, 0)
        self.assertFalse(result.value.is_available)
        self.assertFalse(result.value.is_low_stock)
        self.assertFalse(Product.objects.get(id=self.product.id).is_available)

    def test_restock_makes_product_available(self):
        self.service.update_stock(self.product.id, 0, self.supplier.user)

        result = self.service.update_stock(self.product.id, 15, self.supplier.user)

        self.assertTrue(result.value.is_available)
        product = Product.objects.get(id=self.product.id)
        self.assertEqual(product.stock_quantity, 15)
        self.assertTrue(product.is_available)

    def test_low_stock_flag(self):
        result = self.service.update_stock(self.product.id, 3, self.supplier.user)

        self.assertTrue(result.value.is_low_stock)
        self.assertTrue(result.value.to_dict()["is_low_stock"])

    def test_other_supplier_is_rejected(self):
        result = self.service.update_stock(self.product.id, 5, SupplierProfileFactory().user)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.NOT_PRODUCT_OWNER)
        self.assertEqual(Product.objects.get(id=self.product.id).stock_quantity, 20)

    def test_plain_user_is_rejected(self):
        result = self.service.update_stock(self.product.id, 5, UserFactory())

        self.assertEqual(result.error, ErrorCodes.NOT_PRODUCT_OWNER)

    def test_admin_can_update_any_product(self):
        result = self.service.update_stock(self.product.id, 7, AdminFactory())

        self.assertTrue(result.ok)
        self.assertEqual(Product.objects.get(id=self.product.id).stock_quantity, 7)

    def test_invalid_quantities(self):
        for quantity in (-1, "5", 2.5, None):
            result = self.service.update_stock(self.product.id, quantity, self.supplier.user)
            self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)

    def test_missing_product(self):
        result = self.service.update_stock("00000000-0000-0000-0000-000000000000", 5, self.supplier.user)

        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_FOUND)

    def test_change_is_logged(self):
        self.service.update_stock(self.product.id, 4, self.supplier.user)

        log = ActivityLog.objects.get(action="product_stock_updated", resource_id=str(self.product.id))
        self.assertEqual(log.user_id, self.supplier.user.id)
        self.assertEqual(log.metadata, {"old_stock": 20, "new_stock": 4})

    def test_stock_status(self):
        result = self.service.get_stock_status(self.product.id)

        self.assertTrue(result.ok)
        self.assertEqual(result.value.quantity, 20)
        self.assertTrue(result.value.is_available)
        self.assertFalse(result.value.is_low_stock)

    def test_stock_status_missing_product(self):
        result = self.service.get_stock_status("00000000-0000-0000-0000-000000000000")

        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_FOUND)


class UpdatePriceTest(StockServiceTestBase):
    def test_price_change_reprices_carts(self):
        line = CartItemFactory(product=self.product, quantity=2)
        CartItemFactory(product=self.product, quantity=1)

        result = self.service.update_price(self.product.id, "80.00", self.supplier.user)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["old_price"], Decimal("100.00"))
        self.assertEqual(result.value["new_price"], Decimal("80.00"))
        self.assertEqual(result.value["carts_updated"], 2)

        line = CartItem.objects.get(id=line.id)
        self.assertEqual(line.price, Decimal("80.00"))
        self.assertEqual(line.subtotal, Decimal("160.00"))
        self.assertEqual(Cart.objects.get(id=line.cart_id).subtotal, Decimal("160.00"))

    def test_price_change_without_carts(self):
        result = self.service.update_price(self.product.id, Decimal("99.99"), self.supplier.user)

        self.assertEqual(result.value["carts_updated"], 0)
        self.assertEqual(Product.objects.get(id=self.product.id).price, Decimal("99.99"))

    def test_existing_orders_keep_their_price(self):
        order = OrderFactory(supplier=self.supplier, subtotal=Decimal("100.00"))

        self.service.update_price(self.product.id, "10.00", self.supplier.user)

        self.assertEqual(Order.objects.get(id=order.id).subtotal, Decimal("100.00"))

    def test_invalid_price(self):
        for price in ("-1", "abc", None):
            result = self.service.update_price(self.product.id, price, self.supplier.user)
            self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)

    def test_other_supplier_is_rejected(self):
        result = self.service.update_price(self.product.id, "10.00", SupplierProfileFactory().user)

        self.assertEqual(result.error, ErrorCodes.NOT_PRODUCT_OWNER)
        self.assertEqual(Product.objects.get(id=self.product.id).price, Decimal("100.00"))

    def test_change_is_logged(self):
        self.service.update_price(self.product.id, "80.00", self.supplier.user)

        log = ActivityLog.objects.get(action="product_price_updated", resource_id=str(self.product.id))
        self.assertEqual(log.metadata["carts_updated"], 0)
        self.assertEqual(Decimal(log.metadata["new_price"]), Decimal("80.00"))


@override_settings(LOW_STOCK_THRESHOLD=5)
class SupplierStatsTest(StockServiceTestBase):
    def test_dashboard_figures(self):
        ProductFactory(supplier=self.supplier, stock_quantity=0, is_available=False)
        ProductFactory(supplier=self.supplier, stock_quantity=3)
        DeliveredOrderFactory(supplier=self.supplier, subtotal=Decimal("150.00"))
        DeliveredOrderFactory(supplier=self.supplier, subtotal=Decimal("50.50"))
        OrderFactory(supplier=self.supplier, subtotal=Decimal("999.00"))
        DeliveredOrderFactory(subtotal=Decimal("500.00"))

        result = self.service.get_supplier_stats(self.supplier.user)

        self.assertTrue(result.ok)
        stats = result.value
        self.assertEqual(stats["supplier_id"], self.supplier.id)
        self.assertEqual(stats["products"], {"total": 3, "available": 2, "out_of_stock": 1, "low_stock": 1})
        self.assertEqual(stats["orders"]["total"], 3)
        self.assertEqual(stats["orders"]["by_status"]["delivered"], 2)
        self.assertEqual(stats["orders"]["by_status"]["pending"], 1)
        self.assertEqual(stats["orders"]["by_status"]["cancelled"], 0)
        self.assertEqual(stats["revenue"], Decimal("200.50"))

    def test_user_without_profile(self):
        result = self.service.get_supplier_stats(UserFactory())

        self.assertEqual(result.error, ErrorCodes.SUPPLIER_NOT_FOUND)
