import logging

from django.contrib.auth import get_user_model
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

User = get_user_model()
logger = logging.getLogger(__name__)


class ActivityLog(models.Model):
    """
    Audit trail of business actions (orders placed, stock and price changes).

    ``resource`` names the kind of object touched ("order", "product") and
    ``resource_id`` its primary key as text.
    """

    user = models.ForeignKey(User, on_delete=models.SET_NULL, related_name="activity_logs", null=True, blank=True)
    action = models.CharField(max_length=50)
    resource = models.CharField(max_length=50)
    resource_id = models.CharField(max_length=64, blank=True)
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    # Request metadata
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)

    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "timestamp"], name="activity_log_user_ts_idx"),
            models.Index(fields=["resource", "resource_id"], name="activity_log_resource_idx"),
            models.Index(fields=["action", "timestamp"], name="activity_log_action_ts_idx"),
        ]
        ordering = ["-timestamp"]

    def __str__(self):
        return f"{self.user_id or 'system'} - {self.action} - {self.resource}:{self.resource_id}"
