from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.container import container
from marketplace.models import ProductReview, ReviewReply
from marketplace.tests.factories import (
    DeliveredOrderFactory,
    OrderFactory,
    OrderItemFactory,
    ProductReviewFactory,
    SupplierProfileFactory,
    UserFactory,
)


class ReviewViewIntegrationTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.client = APIClient()

        self.customer = UserFactory(first_name="Ana", last_name="López")
        self.supplier = SupplierProfileFactory()
        self.order = DeliveredOrderFactory(user=self.customer, supplier=self.supplier)
        self.product = OrderItemFactory(order=self.order).product

        self.product_reviews_url = reverse("marketplace:product-reviews", kwargs={"product_id": self.product.id})
        self.supplier_reviews_url = reverse("marketplace:supplier-reviews", kwargs={"supplier_id": self.supplier.id})

    def tearDown(self):
        container.reset()

    def post_product_review(self, rating=5, order=None):
        self.client.force_authenticate(user=self.customer)
        return self.client.post(
            self.product_reviews_url,
            {"order_id": str((order or self.order).id), "rating": rating, "comment": "Excelente calidad"},
            format="json",
        )

    def test_create_product_review(self):
        response = self.post_product_review(rating=4)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["rating"], 4)
        self.assertTrue(response.data["is_verified_purchase"])
        self.assertEqual(response.data["reviewer_name"], "Ana López")
        self.assertIsNone(response.data["reply"])

    def test_duplicate_review_conflicts(self):
        self.post_product_review()

        response = self.post_product_review()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "duplicate_review")

    def test_review_before_delivery(self):
        order = OrderFactory(user=self.customer, supplier=self.supplier, status="shipped")
        OrderItemFactory(order=order, product=self.product)

        response = self.post_product_review(order=order)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "order_not_delivered")

    def test_rating_out_of_range(self):
        response = self.post_product_review(rating=6)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "invalid_input")

    def test_create_requires_authentication(self):
        response = self.client.post(
            self.product_reviews_url, {"order_id": str(self.order.id), "rating": 5}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_is_public(self):
        ProductReviewFactory(order=self.order, product=self.product, rating=3)

        response = self.client.get(self.product_reviews_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["rating"], 3)

    def test_product_rating_stats(self):
        self.post_product_review(rating=4)
        self.client.force_authenticate(user=None)

        response = self.client.get(
            reverse("marketplace:product-rating-stats", kwargs={"product_id": self.product.id})
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_reviews"], 1)
        self.assertEqual(response.data["rating_distribution"][4], 1)

    def test_update_and_delete_own_review(self):
        review_id = self.post_product_review(rating=2).data["id"]
        url = reverse("marketplace:review-detail", kwargs={"pk": review_id})

        response = self.client.put(url, {"rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["rating"], 5)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductReview.objects.filter(id=review_id).exists())

    def test_update_someone_elses_review(self):
        review = ProductReviewFactory(order=self.order, product=self.product)
        self.client.force_authenticate(user=UserFactory())

        response = self.client.put(
            reverse("marketplace:review-detail", kwargs={"pk": review.id}), {"rating": 1}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "permission_denied")

    def test_supplier_replies(self):
        review = ProductReviewFactory(order=self.order, product=self.product)
        self.client.force_authenticate(user=self.supplier.user)

        response = self.client.post(
            reverse("marketplace:review-reply", kwargs={"pk": review.id}), {"reply": "¡Gracias!"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["reply"], "¡Gracias!")
        self.assertEqual(response.data["supplier_name"], self.supplier.company_name)
        self.assertTrue(ReviewReply.objects.filter(review=review).exists())

    def test_reply_requires_supplier_role(self):
        review = ProductReviewFactory(order=self.order, product=self.product)
        self.client.force_authenticate(user=self.customer)

        response = self.client.post(
            reverse("marketplace:review-reply", kwargs={"pk": review.id}), {"reply": "Hi"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reply_from_other_supplier(self):
        review = ProductReviewFactory(order=self.order, product=self.product)
        self.client.force_authenticate(user=SupplierProfileFactory().user)

        response = self.client.post(
            reverse("marketplace:review-reply", kwargs={"pk": review.id}), {"reply": "Hi"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "not_product_owner")

    def test_supplier_review_flow(self):
        self.client.force_authenticate(user=self.customer)

        response = self.client.post(
            self.supplier_reviews_url,
            {
                "order_id": str(self.order.id),
                "product_quality_rating": 5,
                "delivery_speed_rating": 5,
                "communication_rating": 4,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["overall_rating"], 5)

        self.client.force_authenticate(user=None)
        response = self.client.get(self.supplier_reviews_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

        response = self.client.get(
            reverse("marketplace:supplier-rating-stats", kwargs={"supplier_id": self.supplier.id})
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_reviews"], 1)

    def test_supplier_review_wrong_supplier(self):
        other = SupplierProfileFactory()
        self.client.force_authenticate(user=self.customer)

        response = self.client.post(
            reverse("marketplace:supplier-reviews", kwargs={"supplier_id": other.id}),
            {
                "order_id": str(self.order.id),
                "product_quality_rating": 5,
                "delivery_speed_rating": 5,
                "communication_rating": 5,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "supplier_mismatch")

    def test_unknown_supplier_reviews(self):
        response = self.client.get(reverse("marketplace:supplier-reviews", kwargs={"supplier_id": 999999}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "supplier_not_found")
