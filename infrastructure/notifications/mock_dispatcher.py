"""
Mock Notification Dispatcher
=============================

Stores notifications in memory instead of delivering them.
"""

import logging
from typing import List

from .interface import Notification, NotificationDeliveryError, NotificationDispatcherInterface


logger = logging.getLogger(__name__)


class MockNotificationDispatcher(NotificationDispatcherInterface):
    """
    In-memory dispatcher for tests and local development.

    Set ``fail`` to True to simulate a delivery outage.
    """

    def __init__(self):
        self.sent: List[Notification] = []
        self.fail = False

    def send(self, notification: Notification) -> None:
        if self.fail:
            raise NotificationDeliveryError("Mock dispatcher configured to fail")

        logger.info(f"[MOCK NOTIFICATION] To: {notification.user_id}, Type: {notification.notification_type}")
        self.sent.append(notification)

    def sent_to(self, user_id) -> List[Notification]:
        return [n for n in self.sent if n.user_id == str(user_id)]

    def clear(self):
        self.sent.clear()
