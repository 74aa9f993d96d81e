from abc import ABC, abstractmethod


class EventBus(ABC):
    """Publishes domain events to interested consumers."""

    @abstractmethod
    def publish(self, event_type: str, payload: dict) -> bool:
        """
        Publish an event.

        Args:
            event_type: Dotted event name, e.g. "notification.requested"
            payload: JSON-serializable event body

        Returns:
            True if the event was handed to the transport, False otherwise
        """
