from django.core.exceptions import ObjectDoesNotExist
from rest_framework import serializers

from marketplace.catalog.domain.models.interaction import ProductReview, ReviewReply, SupplierReview


def validate_rating_value(value):
    if not 1 <= value <= 5:
        raise serializers.ValidationError("Rating must be between 1 and 5")
    return value


class ReviewReplySerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.company_name", read_only=True)

    class Meta:
        model = ReviewReply
        fields = ["id", "review", "supplier", "supplier_name", "reply", "created_at", "updated_at"]
        read_only_fields = fields


class ProductReviewSerializer(serializers.ModelSerializer):
    reviewer_name = serializers.CharField(source="reviewer.full_name", read_only=True)
    reply = serializers.SerializerMethodField()

    class Meta:
        model = ProductReview
        fields = [
            "id",
            "order",
            "product",
            "reviewer",
            "reviewer_name",
            "rating",
            "comment",
            "images",
            "is_verified_purchase",
            "helpful_count",
            "reply",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_reply(self, obj):
        try:
            reply = obj.reply
        except ObjectDoesNotExist:
            return None
        return {"id": reply.id, "reply": reply.reply, "created_at": reply.created_at, "updated_at": reply.updated_at}


class SupplierReviewSerializer(serializers.ModelSerializer):
    reviewer_name = serializers.CharField(source="reviewer.full_name", read_only=True)

    class Meta:
        model = SupplierReview
        fields = [
            "id",
            "order",
            "supplier",
            "reviewer",
            "reviewer_name",
            "product_quality_rating",
            "delivery_speed_rating",
            "communication_rating",
            "overall_rating",
            "comment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CreateProductReviewRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(help_text="Delivered order containing the product")
    rating = serializers.IntegerField(validators=[validate_rating_value])
    comment = serializers.CharField(required=False, allow_blank=True, default="")
    images = serializers.ListField(child=serializers.URLField(), required=False, default=list)


class UpdateProductReviewRequestSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False, validators=[validate_rating_value])
    comment = serializers.CharField(required=False, allow_blank=True)
    images = serializers.ListField(child=serializers.URLField(), required=False)


class CreateSupplierReviewRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(help_text="Delivered order fulfilled by the supplier")
    product_quality_rating = serializers.IntegerField(validators=[validate_rating_value])
    delivery_speed_rating = serializers.IntegerField(validators=[validate_rating_value])
    communication_rating = serializers.IntegerField(validators=[validate_rating_value])
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class ReviewReplyRequestSerializer(serializers.Serializer):
    reply = serializers.CharField(help_text="Supplier answer to the review")
