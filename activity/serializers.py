from rest_framework import serializers

from .models import ActivityLog


class ActivityLogSerializer(serializers.ModelSerializer):
    user_email = serializers.CharField(source="user.email", read_only=True, default=None)

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "user",
            "user_email",
            "action",
            "resource",
            "resource_id",
            "metadata",
            "ip_address",
            "timestamp",
        ]
        read_only_fields = fields


class ActivityHistoryQuerySerializer(serializers.Serializer):
    resource = serializers.CharField(required=False, max_length=50)
    resource_id = serializers.CharField(required=False, max_length=64)
    user_id = serializers.UUIDField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=50)
