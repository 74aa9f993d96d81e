from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from marketplace.models import CartItem, Product
from marketplace.tests.factories import (
    AdminFactory,
    CartItemFactory,
    DeliveredOrderFactory,
    ProductFactory,
    SupplierProfileFactory,
    UserFactory,
)


@override_settings(LOW_STOCK_THRESHOLD=10)
class StockViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()
        self.supplier = SupplierProfileFactory()
        self.product = ProductFactory(supplier=self.supplier, stock_quantity=30, price=Decimal("40.00"))

        self.stock_url = reverse("marketplace:product-stock", kwargs={"product_id": self.product.id})
        self.price_url = reverse("marketplace:product-price", kwargs={"product_id": self.product.id})

    def tearDown(self):
        container.reset()

    def test_stock_status_is_public(self):
        response = self.client.get(self.stock_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["quantity"], 30)
        self.assertTrue(response.data["is_available"])
        self.assertFalse(response.data["is_low_stock"])

    def test_supplier_sets_stock_to_zero(self):
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.put(self.stock_url, {"stock_quantity": 0}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["quantity"], 0)
        self.assertFalse(response.data["is_available"])
        self.assertFalse(Product.objects.get(id=self.product.id).is_available)

    def test_low_stock_reported(self):
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.put(self.stock_url, {"stock_quantity": 4}, format="json")

        self.assertTrue(response.data["is_low_stock"])
        self.assertEqual(response.data["low_stock_threshold"], 10)

    def test_negative_stock_rejected(self):
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.put(self.stock_url, {"stock_quantity": -3}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_input")

    def test_other_supplier_forbidden(self):
        self.client.force_authenticate(user=SupplierProfileFactory().user)

        response = self.client.put(self.stock_url, {"stock_quantity": 5}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "not_product_owner")

    def test_customer_forbidden(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.put(self.stock_url, {"stock_quantity": 5}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_may_update_stock(self):
        self.client.force_authenticate(user=AdminFactory())

        response = self.client.put(self.stock_url, {"stock_quantity": 12}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.get(id=self.product.id).stock_quantity, 12)

    def test_unknown_product(self):
        self.client.force_authenticate(user=self.supplier.user)
        url = reverse("marketplace:product-stock", kwargs={"product_id": "00000000-0000-0000-0000-000000000000"})

        response = self.client.put(url, {"stock_quantity": 1}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "product_not_found")

    def test_price_update_propagates_to_carts(self):
        item = CartItemFactory(product=self.product, quantity=3)
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.put(self.price_url, {"price": "35.50"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["carts_updated"], 1)
        item = CartItem.objects.get(id=item.id)
        self.assertEqual(item.price, Decimal("35.50"))
        self.assertEqual(item.subtotal, Decimal("106.50"))

    def test_price_must_not_be_negative(self):
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.put(self.price_url, {"price": "-1.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_supplier_dashboard(self):
        DeliveredOrderFactory(supplier=self.supplier, subtotal=Decimal("80.00"))
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.get(reverse("marketplace:supplier-me-stats"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["products"]["total"], 1)
        self.assertEqual(response.data["orders"]["by_status"]["delivered"], 1)
        self.assertEqual(response.data["revenue"], Decimal("80.00"))

    def test_dashboard_forbidden_for_customers(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(reverse("marketplace:supplier-me-stats"))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
