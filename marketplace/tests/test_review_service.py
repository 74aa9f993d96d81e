from decimal import Decimal

from django.test import TestCase

from infrastructure.container import container
from marketplace.catalog.domain.services.review_service import overall_rating
from marketplace.models import Product, ProductReview, ReviewReply, SupplierProfile
from marketplace.services import ErrorCodes
from marketplace.tests.factories import (
    DeliveredOrderFactory,
    OrderFactory,
    OrderItemFactory,
    ProductReviewFactory,
    SupplierProfileFactory,
    SupplierReviewFactory,
    UserFactory,
)


class ReviewServiceTestBase(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.dispatcher = container.notification_dispatcher()
        self.service = container.review_service()

        self.customer = UserFactory()
        self.supplier = SupplierProfileFactory()
        self.order = DeliveredOrderFactory(user=self.customer, supplier=self.supplier)
        self.item = OrderItemFactory(order=self.order)
        self.product = self.item.product

    def tearDown(self):
        container.reset()


class ProductReviewCreationTest(ReviewServiceTestBase):
    def review(self, user=None, order=None, product=None, rating=5, comment="Great tiles"):
        return self.service.create_product_review(
            user or self.customer, (order or self.order).id, (product or self.product).id, rating, comment
        )

    def test_review_delivered_order(self):
        result = self.review(rating=4)

        self.assertTrue(result.ok)
        self.assertTrue(result.value.is_verified_purchase)
        product = Product.objects.get(id=self.product.id)
        self.assertEqual(product.rating, Decimal("4.00"))
        self.assertEqual(product.total_reviews, 1)

    def test_rating_is_mean_of_reviews(self):
        self.review(rating=5)
        second_order = DeliveredOrderFactory(supplier=self.supplier)
        OrderItemFactory(order=second_order, product=self.product)

        result = self.review(user=second_order.user, order=second_order, rating=2)

        self.assertTrue(result.ok)
        product = Product.objects.get(id=self.product.id)
        self.assertEqual(product.rating, Decimal("3.50"))
        self.assertEqual(product.total_reviews, 2)

    def test_rating_is_rounded_to_cents(self):
        self.review(rating=5)
        for rating in (4, 4):
            order = DeliveredOrderFactory(supplier=self.supplier)
            OrderItemFactory(order=order, product=self.product)
            result = self.review(user=order.user, order=order, rating=rating)
            self.assertTrue(result.ok)

        product = Product.objects.get(id=self.product.id)
        self.assertEqual(product.rating, Decimal("4.33"))
        self.assertEqual(product.total_reviews, 3)

    def test_pending_order_is_rejected(self):
        order = OrderFactory(user=self.customer, supplier=self.supplier)
        OrderItemFactory(order=order, product=self.product)

        result = self.review(order=order)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_DELIVERED)

    def test_other_users_order_is_forbidden(self):
        result = self.review(user=UserFactory())

        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)

    def test_missing_order(self):
        result = self.service.create_product_review(
            self.customer, "00000000-0000-0000-0000-000000000000", self.product.id, 5, ""
        )

        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)

    def test_product_not_in_order(self):
        stray = OrderItemFactory().product

        result = self.review(product=stray)

        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_IN_ORDER)

    def test_every_duplicate_gets_the_same_error(self):
        self.assertTrue(self.review().ok)

        for _ in range(2):
            result = self.review(rating=1)
            self.assertFalse(result.ok)
            self.assertEqual(result.error, ErrorCodes.DUPLICATE_REVIEW)

        self.assertEqual(ProductReview.objects.filter(product=self.product).count(), 1)

    def test_rating_out_of_range(self):
        for rating in (0, 6, True):
            self.assertEqual(self.review(rating=rating).error, ErrorCodes.INVALID_INPUT)

    def test_supplier_is_notified(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.review(rating=5)

        sent = self.dispatcher.sent_to(self.supplier.user_id)
        self.assertEqual([n.notification_type for n in sent], ["new_product_review"])
        self.assertEqual(sent[0].data["rating"], 5)


class ProductReviewMaintenanceTest(ReviewServiceTestBase):
    def setUp(self):
        super().setUp()
        self.review = self.service.create_product_review(
            self.customer, self.order.id, self.product.id, 2, "Arrived cracked"
        ).value

    def test_update_recomputes_rating(self):
        result = self.service.update_product_review(self.review.id, self.customer, rating=4, comment="Replaced")

        self.assertTrue(result.ok)
        self.assertEqual(result.value.comment, "Replaced")
        self.assertEqual(Product.objects.get(id=self.product.id).rating, Decimal("4.00"))

    def test_only_author_can_update(self):
        result = self.service.update_product_review(self.review.id, UserFactory(), rating=5)

        self.assertEqual(result.error, ErrorCodes.PERMISSION_DENIED)

    def test_delete_removes_reply_and_resets_rating(self):
        self.service.reply_to_review(self.review.id, self.supplier.user, "Sorry, sending another")

        result = self.service.delete_product_review(self.review.id, self.customer)

        self.assertTrue(result.ok)
        self.assertFalse(ProductReview.objects.filter(id=self.review.id).exists())
        self.assertFalse(ReviewReply.objects.filter(review_id=self.review.id).exists())
        product = Product.objects.get(id=self.product.id)
        self.assertEqual(product.rating, Decimal("0.00"))
        self.assertEqual(product.total_reviews, 0)

    def test_only_author_can_delete(self):
        result = self.service.delete_product_review(self.review.id, UserFactory())

        self.assertEqual(result.error, ErrorCodes.PERMISSION_DENIED)
        self.assertTrue(ProductReview.objects.filter(id=self.review.id).exists())

    def test_reply_is_upserted(self):
        first = self.service.reply_to_review(self.review.id, self.supplier.user, "We are sorry")
        second = self.service.reply_to_review(self.review.id, self.supplier.user, "Replacement shipped")

        self.assertTrue(first.ok)
        self.assertTrue(second.ok)
        self.assertEqual(first.value.id, second.value.id)
        self.assertEqual(ReviewReply.objects.filter(review_id=self.review.id).count(), 1)
        self.assertEqual(ReviewReply.objects.get(review_id=self.review.id).reply, "Replacement shipped")

    def test_reply_notifies_reviewer(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.service.reply_to_review(self.review.id, self.supplier.user, "We are sorry")

        sent = self.dispatcher.sent_to(self.customer.id)
        self.assertEqual([n.notification_type for n in sent], ["supplier_reply"])

    def test_other_supplier_cannot_reply(self):
        result = self.service.reply_to_review(self.review.id, SupplierProfileFactory().user, "Not mine")

        self.assertEqual(result.error, ErrorCodes.NOT_PRODUCT_OWNER)

    def test_reply_to_missing_review(self):
        result = self.service.reply_to_review(999999, self.supplier.user, "Hello")

        self.assertEqual(result.error, ErrorCodes.REVIEW_NOT_FOUND)

    def test_list_product_reviews_includes_reply(self):
        self.service.reply_to_review(self.review.id, self.supplier.user, "Thanks")

        result = self.service.list_product_reviews(self.product.id)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["count"], 1)
        self.assertEqual(result.value["results"][0].reply.reply, "Thanks")


class SupplierReviewTest(ReviewServiceTestBase):
    def review(self, supplier_id=None, ratings=(5, 4, 4), user=None):
        return self.service.create_supplier_review(
            user or self.customer, self.order.id, supplier_id or self.supplier.id, *ratings, comment="Fast"
        )

    def test_overall_rating_rounds_half_up(self):
        self.assertEqual(overall_rating(5, 4, 4), 4)
        self.assertEqual(overall_rating(5, 5, 4), 5)
        self.assertEqual(overall_rating(1, 2, 2), 2)
        self.assertEqual(overall_rating(3, 3, 3), 3)

    def test_create_updates_supplier_aggregate(self):
        result = self.review(ratings=(5, 5, 4))

        self.assertTrue(result.ok)
        self.assertEqual(result.value.overall_rating, 5)
        supplier = SupplierProfile.objects.get(id=self.supplier.id)
        self.assertEqual(supplier.rating, Decimal("5.00"))
        self.assertEqual(supplier.total_reviews, 1)

    def test_supplier_rating_is_mean_of_overall(self):
        SupplierReviewFactory(supplier=self.supplier, order=DeliveredOrderFactory(supplier=self.supplier), overall_rating=2)

        self.review(ratings=(5, 5, 5))

        self.assertEqual(SupplierProfile.objects.get(id=self.supplier.id).rating, Decimal("3.50"))

    def test_wrong_supplier(self):
        result = self.review(supplier_id=SupplierProfileFactory().id)

        self.assertEqual(result.error, ErrorCodes.SUPPLIER_MISMATCH)

    def test_duplicate(self):
        self.review()

        self.assertEqual(self.review().error, ErrorCodes.DUPLICATE_REVIEW)

    def test_order_not_delivered(self):
        self.order.status = "shipped"
        self.order.save()

        self.assertEqual(self.review().error, ErrorCodes.ORDER_NOT_DELIVERED)

    def test_invalid_category_rating(self):
        self.assertEqual(self.review(ratings=(5, 0, 4)).error, ErrorCodes.INVALID_INPUT)

    def test_supplier_stats(self):
        self.review(ratings=(4, 2, 3))

        result = self.service.get_supplier_rating_stats(self.supplier.id)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["total_reviews"], 1)
        self.assertEqual(result.value["average_rating"], Decimal("3.00"))
        self.assertEqual(result.value["product_quality_average"], Decimal("4.00"))
        self.assertEqual(result.value["delivery_speed_average"], Decimal("2.00"))
        self.assertEqual(result.value["communication_average"], Decimal("3.00"))

    def test_supplier_stats_without_reviews(self):
        result = self.service.get_supplier_rating_stats(self.supplier.id)

        self.assertEqual(result.value["total_reviews"], 0)
        self.assertEqual(result.value["average_rating"], Decimal("0.00"))

    def test_list_supplier_reviews(self):
        self.review()

        result = self.service.list_supplier_reviews(self.supplier.id)

        self.assertEqual(result.value["count"], 1)
        self.assertEqual(self.service.list_supplier_reviews(999999).error, ErrorCodes.SUPPLIER_NOT_FOUND)


class ProductRatingStatsTest(ReviewServiceTestBase):
    def test_distribution_and_verified_percentage(self):
        for rating, verified in ((5, True), (5, True), (3, True), (1, False)):
            order = DeliveredOrderFactory(supplier=self.supplier)
            ProductReviewFactory(order=order, product=self.product, rating=rating, is_verified_purchase=verified)

        result = self.service.get_product_rating_stats(self.product.id)

        self.assertTrue(result.ok)
        stats = result.value
        self.assertEqual(stats["total_reviews"], 4)
        self.assertEqual(stats["average_rating"], Decimal("3.50"))
        self.assertEqual(stats["rating_distribution"], {1: 1, 2: 0, 3: 1, 4: 0, 5: 2})
        self.assertEqual(stats["verified_purchase_percentage"], Decimal("75.00"))

    def test_missing_product(self):
        result = self.service.get_product_rating_stats("00000000-0000-0000-0000-000000000000")

        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_FOUND)
