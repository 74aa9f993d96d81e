"""
ReviewService - Product and Supplier Reviews

Verified reviews tied to delivered orders, rolling rating aggregates on
products and suppliers, and supplier replies to product reviews.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Q

from marketplace import policies
from marketplace.catalog.domain.models.catalog import Product
from marketplace.catalog.domain.models.interaction import ProductReview, ReviewReply, SupplierReview
from marketplace.notifications.domain.services.notification_service import NotificationService, NotificationTypes
from marketplace.ordering.domain.models.order import Order
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceAbort,
    ServiceResult,
    paginate,
    service_err,
    service_ok,
)
from marketplace.suppliers.domain.models.supplier import SupplierProfile


User = get_user_model()
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def is_valid_rating(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= 5


def overall_rating(product_quality: int, delivery_speed: int, communication: int) -> int:
    """Mean of the three category ratings, rounded half up to a whole star."""
    mean = Decimal(product_quality + delivery_speed + communication) / Decimal(3)
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _average(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


class ReviewService(BaseService):
    """
    Service for managing product and supplier reviews.

    Responsibilities:
    - Create reviews for delivered orders (one per order and product/supplier)
    - Update and delete product reviews (author only)
    - Supplier replies to product reviews
    - Keep Product.rating / SupplierProfile.rating in sync
    - Rating statistics

    Dependencies:
    - NotificationService: tells suppliers about new reviews and reviewers about replies
    """

    def __init__(self, notification_service: NotificationService = None):
        """
        Initialize ReviewService.

        Args:
            notification_service: Outbox for user notifications (injected)
        """
        super().__init__()
        self.notification_service = notification_service or NotificationService()

    @BaseService.log_performance
    def create_product_review(
        self,
        user: User,
        order_id,
        product_id,
        rating: int,
        comment: str = "",
        images: Optional[List[str]] = None,
    ) -> ServiceResult[ProductReview]:
        """
        Review a product bought in a delivered order.

        Validates, in order:
        - order exists and belongs to the user
        - order is delivered
        - product is part of the order
        - no review exists yet for (order, user, product)

        Returns:
            ServiceResult with the created ProductReview (is_verified_purchase=True)
        """
        if not is_valid_rating(rating):
            return service_err(ErrorCodes.INVALID_INPUT, "Rating must be an integer between 1 and 5")

        try:
            with transaction.atomic():
                order = self._reviewable_order(user, order_id)

                if not order.items.filter(product_id=product_id).exists():
                    raise ServiceAbort(
                        service_err(ErrorCodes.PRODUCT_NOT_IN_ORDER, f"Product {product_id} is not part of this order")
                    )

                if ProductReview.objects.filter(order=order, reviewer=user, product_id=product_id).exists():
                    raise ServiceAbort(self._duplicate("product"))

                try:
                    with transaction.atomic():
                        review = ProductReview.objects.create(
                            order=order,
                            product_id=product_id,
                            reviewer=user,
                            rating=rating,
                            comment=comment or "",
                            images=list(images or []),
                            is_verified_purchase=True,
                        )
                except IntegrityError:
                    # Lost a race with a concurrent identical review
                    raise ServiceAbort(self._duplicate("product"))

                product = self._refresh_product_rating(product_id)
                self.notification_service.enqueue(
                    product.supplier.user_id,
                    NotificationTypes.NEW_PRODUCT_REVIEW,
                    {
                        "review_id": review.id,
                        "product_id": str(product.id),
                        "product_name": product.name,
                        "rating": rating,
                        "comment": review.comment,
                    },
                )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error creating product review: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Created review {review.id} for product {product_id} by user {user.id}")
        return service_ok(review)

    @BaseService.log_performance
    def create_supplier_review(
        self,
        user: User,
        order_id,
        supplier_id: int,
        product_quality_rating: int,
        delivery_speed_rating: int,
        communication_rating: int,
        comment: str = "",
    ) -> ServiceResult[SupplierReview]:
        """
        Review the supplier of a delivered order.

        ``overall_rating`` is the half-up rounded mean of the three category ratings.

        Returns:
            ServiceResult with the created SupplierReview
        """
        ratings = (product_quality_rating, delivery_speed_rating, communication_rating)
        if not all(is_valid_rating(r) for r in ratings):
            return service_err(ErrorCodes.INVALID_INPUT, "Ratings must be integers between 1 and 5")

        try:
            with transaction.atomic():
                order = self._reviewable_order(user, order_id)

                if order.supplier_id != supplier_id:
                    raise ServiceAbort(
                        service_err(ErrorCodes.SUPPLIER_MISMATCH, f"Order was not fulfilled by supplier {supplier_id}")
                    )

                if SupplierReview.objects.filter(order=order, reviewer=user, supplier_id=supplier_id).exists():
                    raise ServiceAbort(self._duplicate("supplier"))

                try:
                    with transaction.atomic():
                        review = SupplierReview.objects.create(
                            order=order,
                            supplier_id=supplier_id,
                            reviewer=user,
                            product_quality_rating=product_quality_rating,
                            delivery_speed_rating=delivery_speed_rating,
                            communication_rating=communication_rating,
                            overall_rating=overall_rating(*ratings),
                            comment=comment or "",
                        )
                except IntegrityError:
                    raise ServiceAbort(self._duplicate("supplier"))

                supplier = self._refresh_supplier_rating(supplier_id)
                self.notification_service.enqueue(
                    supplier.user_id,
                    NotificationTypes.NEW_SUPPLIER_REVIEW,
                    {
                        "review_id": review.id,
                        "order_number": order.order_number,
                        "overall_rating": review.overall_rating,
                        "comment": review.comment,
                    },
                )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error creating supplier review: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Created supplier review {review.id} for supplier {supplier_id} by user {user.id}")
        return service_ok(review)

    @BaseService.log_performance
    def reply_to_review(self, review_id: int, supplier_user: User, text: str) -> ServiceResult[ReviewReply]:
        """
        Answer a product review as the product's supplier.

        A second reply from the supplier overwrites the first.
        """
        if not text or not text.strip():
            return service_err(ErrorCodes.INVALID_INPUT, "Reply text is required")

        try:
            with transaction.atomic():
                try:
                    review = ProductReview.objects.select_related("product").get(id=review_id)
                except ProductReview.DoesNotExist:
                    raise ServiceAbort(service_err(ErrorCodes.REVIEW_NOT_FOUND, f"Review {review_id} not found"))

                supplier_id = policies.supplier_id_for(supplier_user)
                if not policies.can_reply_to_review(supplier_id, review):
                    raise ServiceAbort(
                        service_err(ErrorCodes.NOT_PRODUCT_OWNER, "You can only reply to reviews of your own products")
                    )

                reply, created = ReviewReply.objects.update_or_create(
                    review=review,
                    defaults={"supplier_id": supplier_id, "reply": text.strip()},
                )

                self.notification_service.enqueue(
                    review.reviewer_id,
                    NotificationTypes.SUPPLIER_REPLY,
                    {
                        "review_id": review.id,
                        "reply_id": reply.id,
                        "product_name": review.product.name,
                        "reply": reply.reply,
                    },
                )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error replying to review {review_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Review reply {'created' if created else 'updated'}: {reply.id} for review {review_id}")
        return service_ok(reply)

    @BaseService.log_performance
    def update_product_review(
        self,
        review_id: int,
        user: User,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
        images: Optional[List[str]] = None,
    ) -> ServiceResult[ProductReview]:
        """
        Edit a review (author only) and recompute the product rating.
        """
        if rating is not None and not is_valid_rating(rating):
            return service_err(ErrorCodes.INVALID_INPUT, "Rating must be an integer between 1 and 5")

        try:
            with transaction.atomic():
                review = self._own_review(review_id, user)

                update_fields = ["updated_at"]
                if rating is not None:
                    review.rating = rating
                    update_fields.append("rating")
                if comment is not None:
                    review.comment = comment
                    update_fields.append("comment")
                if images is not None:
                    review.images = list(images)
                    update_fields.append("images")
                review.save(update_fields=update_fields)

                self._refresh_product_rating(review.product_id)

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error updating review {review_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Updated review {review_id} by user {user.id}")
        return service_ok(review)

    @BaseService.log_performance
    def delete_product_review(self, review_id: int, user: User) -> ServiceResult[bool]:
        """
        Delete a review together with its reply (author only).
        """
        try:
            with transaction.atomic():
                review = self._own_review(review_id, user)
                product_id = review.product_id
                # The reply cascades with the review
                review.delete()
                self._refresh_product_rating(product_id)

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error deleting review {review_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Deleted review {review_id} by user {user.id}")
        return service_ok(True)

    @BaseService.log_performance
    def list_product_reviews(self, product_id, page: int = 1, page_size: int = 20) -> ServiceResult[Dict]:
        """Reviews of a product, newest first, each with its supplier reply if any."""
        if not Product.objects.filter(id=product_id).exists():
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        queryset = (
            ProductReview.objects.filter(product_id=product_id)
            .select_related("reviewer", "reply")
            .order_by("-created_at")
        )
        return service_ok(paginate(queryset, page, page_size))

    @BaseService.log_performance
    def list_supplier_reviews(self, supplier_id: int, page: int = 1, page_size: int = 20) -> ServiceResult[Dict]:
        """Reviews of a supplier, newest first."""
        if not SupplierProfile.objects.filter(id=supplier_id).exists():
            return service_err(ErrorCodes.SUPPLIER_NOT_FOUND, f"Supplier {supplier_id} not found")

        queryset = SupplierReview.objects.filter(supplier_id=supplier_id).select_related("reviewer").order_by("-created_at")
        return service_ok(paginate(queryset, page, page_size))

    @BaseService.log_performance
    def get_product_rating_stats(self, product_id) -> ServiceResult[Dict]:
        """
        Rating statistics of a product.

        Returns:
            ServiceResult with {"product_id", "average_rating", "total_reviews",
            "rating_distribution", "verified_purchase_percentage"}
        """
        if not Product.objects.filter(id=product_id).exists():
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

        reviews = ProductReview.objects.filter(product_id=product_id)
        summary = reviews.aggregate(
            average=Avg("rating"),
            total=Count("id"),
            verified=Count("id", filter=Q(is_verified_purchase=True)),
        )

        distribution = {star: 0 for star in range(1, 6)}
        for row in reviews.values("rating").annotate(count=Count("id")):
            distribution[row["rating"]] = row["count"]

        total = summary["total"]
        verified_percentage = (
            _average(Decimal(summary["verified"]) * 100 / Decimal(total)) if total else Decimal("0.00")
        )

        return service_ok(
            {
                "product_id": product_id,
                "average_rating": _average(summary["average"]),
                "total_reviews": total,
                "rating_distribution": distribution,
                "verified_purchase_percentage": verified_percentage,
            }
        )

    @BaseService.log_performance
    def get_supplier_rating_stats(self, supplier_id: int) -> ServiceResult[Dict]:
        """
        Rating statistics of a supplier, overall and per category.
        """
        if not SupplierProfile.objects.filter(id=supplier_id).exists():
            return service_err(ErrorCodes.SUPPLIER_NOT_FOUND, f"Supplier {supplier_id} not found")

        summary = SupplierReview.objects.filter(supplier_id=supplier_id).aggregate(
            average=Avg("overall_rating"),
            total=Count("id"),
            product_quality=Avg("product_quality_rating"),
            delivery_speed=Avg("delivery_speed_rating"),
            communication=Avg("communication_rating"),
        )

        return service_ok(
            {
                "supplier_id": supplier_id,
                "average_rating": _average(summary["average"]),
                "total_reviews": summary["total"],
                "product_quality_average": _average(summary["product_quality"]),
                "delivery_speed_average": _average(summary["delivery_speed"]),
                "communication_average": _average(summary["communication"]),
            }
        )

    def _reviewable_order(self, user: User, order_id) -> Order:
        try:
            order = Order.objects.get(id=order_id)
        except Order.DoesNotExist:
            raise ServiceAbort(service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found"))

        if order.user_id != user.pk:
            raise ServiceAbort(service_err(ErrorCodes.NOT_ORDER_OWNER, "You can only review your own orders"))

        if order.status != Order.STATUS_DELIVERED:
            raise ServiceAbort(
                service_err(ErrorCodes.ORDER_NOT_DELIVERED, "You can only review orders that have been delivered")
            )
        return order

    def _own_review(self, review_id: int, user: User) -> ProductReview:
        try:
            review = ProductReview.objects.select_for_update().get(id=review_id)
        except ProductReview.DoesNotExist:
            raise ServiceAbort(service_err(ErrorCodes.REVIEW_NOT_FOUND, f"Review {review_id} not found"))

        if review.reviewer_id != user.pk:
            raise ServiceAbort(service_err(ErrorCodes.PERMISSION_DENIED, "You can only modify your own reviews"))
        return review

    def _duplicate(self, target: str) -> ServiceResult:
        return service_err(ErrorCodes.DUPLICATE_REVIEW, f"You have already reviewed this {target} for this order")

    def _refresh_product_rating(self, product_id) -> Product:
        summary = ProductReview.objects.filter(product_id=product_id).aggregate(average=Avg("rating"), total=Count("id"))
        product = Product.objects.select_related("supplier").get(id=product_id)
        product.rating = _average(summary["average"])
        product.total_reviews = summary["total"]
        product.save(update_fields=["rating", "total_reviews", "updated_at"])
        self.logger.info(f"Product {product_id} rating updated: {product.rating} ({product.total_reviews} reviews)")
        return product

    def _refresh_supplier_rating(self, supplier_id: int) -> SupplierProfile:
        summary = SupplierReview.objects.filter(supplier_id=supplier_id).aggregate(
            average=Avg("overall_rating"), total=Count("id")
        )
        supplier = SupplierProfile.objects.get(id=supplier_id)
        supplier.rating = _average(summary["average"])
        supplier.total_reviews = summary["total"]
        supplier.save(update_fields=["rating", "total_reviews", "updated_at"])
        self.logger.info(f"Supplier {supplier_id} rating updated: {supplier.rating} ({supplier.total_reviews} reviews)")
        return supplier
