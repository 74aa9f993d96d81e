"""
Notification Dispatcher Factory
================================

Creates the dispatcher selected by ``settings.INFRASTRUCTURE["NOTIFICATION_BACKEND"]``.
"""

import logging
from typing import Literal, Optional

from django.conf import settings

from .event_bus_dispatcher import EventBusNotificationDispatcher
from .interface import NotificationDispatcherInterface
from .mock_dispatcher import MockNotificationDispatcher


logger = logging.getLogger(__name__)

NotificationBackend = Literal["event_bus", "mock"]


class NotificationFactory:
    """
    Factory for creating notification dispatchers.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"NOTIFICATION_BACKEND": "event_bus"}  # or "mock"

        # In your code
        dispatcher = NotificationFactory.create()
    """

    @staticmethod
    def create(backend: Optional[NotificationBackend] = None) -> NotificationDispatcherInterface:
        """
        Create a notification dispatcher.

        Raises:
            ValueError: If backend type is invalid
        """
        infrastructure = getattr(settings, "INFRASTRUCTURE", {})
        backend_type = backend or infrastructure.get("NOTIFICATION_BACKEND", "event_bus")

        logger.info(f"Creating notification dispatcher backend: {backend_type}")

        if backend_type == "event_bus":
            return EventBusNotificationDispatcher()
        elif backend_type == "mock":
            return MockNotificationDispatcher()
        else:
            raise ValueError(f"Invalid notification backend: {backend_type}. Must be 'event_bus' or 'mock'")
