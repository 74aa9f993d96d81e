import json
import logging
from typing import Optional

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


class RedisEventBus(EventBus):
    """Redis pub/sub implementation of event bus."""

    def __init__(self, redis_url: Optional[str] = None, client=None):
        self.redis_url = redis_url or getattr(settings, "REDIS_URL", "redis://localhost:6379/0")
        # from_url is lazy: no connection is opened until the first command
        self.redis_client = client if client is not None else redis.from_url(self.redis_url)

    def publish(self, event_type: str, payload: dict) -> bool:
        """Publish event to the ``events.<event_type>`` Redis channel."""
        message = {"event_type": event_type, "occurred_at": timezone.now().isoformat(), "payload": payload}
        channel = f"events.{event_type}"
        try:
            receivers = self.redis_client.publish(channel, json.dumps(message, cls=DjangoJSONEncoder))
        except redis.RedisError as e:
            logger.error(f"Failed to publish event {event_type}: {str(e)}")
            return False

        logger.info(f"Published event: {event_type} ({receivers} subscribers)")
        return True


# Singleton instance
_event_bus_instance = None


def get_event_bus() -> EventBus:
    """Get singleton event bus instance."""
    global _event_bus_instance
    if _event_bus_instance is None:
        _event_bus_instance = RedisEventBus()
    return _event_bus_instance
