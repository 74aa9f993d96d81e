import logging
from typing import Optional

from infrastructure.events import EventBus, get_event_bus

from .interface import Notification, NotificationDeliveryError, NotificationDispatcherInterface


logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification.requested"


class EventBusNotificationDispatcher(NotificationDispatcherInterface):
    """Hands notifications to the push/email workers through the event bus."""

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus or get_event_bus()

    def send(self, notification: Notification) -> None:
        published = self.event_bus.publish(NOTIFICATION_EVENT, notification.to_dict())
        if not published:
            raise NotificationDeliveryError(
                f"Event bus rejected {notification.notification_type} notification for user {notification.user_id}"
            )
        logger.debug(f"Notification {notification.notification_type} published for user {notification.user_id}")
