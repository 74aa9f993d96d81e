from .outbox import NotificationOutbox


__all__ = ["NotificationOutbox"]
