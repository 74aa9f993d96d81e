"""
Notification Dispatcher Interface
==================================

Abstract base class for delivering user notifications.
Business code never calls a dispatcher directly: notifications are written
to the outbox and dispatched once the surrounding transaction commits.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


class NotificationDeliveryError(Exception):
    """Raised by a dispatcher when a notification could not be handed off."""


@dataclass
class Notification:
    """
    A notification addressed to a single user.

    Attributes:
        user_id: Recipient user id (string form of the UUID)
        notification_type: e.g. "order_created", "order_shipped", "supplier_reply"
        data: JSON-serializable payload for the client
    """

    user_id: str
    notification_type: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "type": self.notification_type, "data": self.data}


class NotificationDispatcherInterface(ABC):
    """
    Abstract interface for notification delivery.

    Concrete implementations:
        - EventBusNotificationDispatcher: publishes to the Redis event bus
        - MockNotificationDispatcher: records notifications in memory
    """

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """
        Deliver a notification.

        Raises:
            NotificationDeliveryError: If the notification could not be delivered
        """
