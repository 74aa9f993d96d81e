"""
Notification Dispatch Abstraction Layer
========================================

Delivers user notifications (order lifecycle, reviews, replies) to the
channel workers. Select the backend through
``settings.INFRASTRUCTURE["NOTIFICATION_BACKEND"]``.
"""

from .event_bus_dispatcher import EventBusNotificationDispatcher
from .factory import NotificationFactory
from .interface import Notification, NotificationDeliveryError, NotificationDispatcherInterface
from .mock_dispatcher import MockNotificationDispatcher


__all__ = [
    "EventBusNotificationDispatcher",
    "MockNotificationDispatcher",
    "Notification",
    "NotificationDeliveryError",
    "NotificationDispatcherInterface",
    "NotificationFactory",
]
