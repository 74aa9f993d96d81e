"""Recording and reading the activity audit trail."""

import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError, transaction

from .models import ActivityLog

logger = logging.getLogger(__name__)


def _client_ip(request) -> Optional[str]:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


class ActivityLogService:
    """Writes audit entries without ever failing the business operation."""

    def log_activity(
        self,
        action: str,
        resource: str,
        resource_id=None,
        user=None,
        metadata: Optional[Dict[str, Any]] = None,
        request=None,
    ) -> Optional[ActivityLog]:
        """
        Record an audit entry.

        Runs in a savepoint when called inside a transaction, so a failed
        insert is logged and the caller's transaction carries on.

        Returns:
            The saved ActivityLog, or None if it could not be written
        """
        ip_address = _client_ip(request) if request is not None else None
        user_agent = request.META.get("HTTP_USER_AGENT", "") if request is not None else ""

        try:
            with transaction.atomic():
                entry = ActivityLog.objects.create(
                    user=user if user is not None and getattr(user, "is_authenticated", False) else None,
                    action=action,
                    resource=resource,
                    resource_id=str(resource_id) if resource_id is not None else "",
                    metadata=metadata or {},
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
        except DatabaseError as e:
            logger.error(f"Failed to record activity {action} on {resource}:{resource_id}: {e}", exc_info=True)
            return None

        logger.debug(f"Activity recorded: {action} {resource}:{resource_id}")
        return entry

    def history(self, user=None, resource: Optional[str] = None, resource_id=None):
        """Newest first. ``user=None`` returns every entry."""
        queryset = ActivityLog.objects.all()
        if user is not None:
            queryset = queryset.filter(user=user)
        if resource:
            queryset = queryset.filter(resource=resource)
        if resource_id is not None:
            queryset = queryset.filter(resource_id=str(resource_id))
        return queryset
