"""
Dependency Injection Container
================================

Simple service locator for the infrastructure adapters and the marketplace
domain services that depend on them.

Usage:
    from infrastructure.container import container

    order_service = container.order_service()
    dispatcher = container.notification_dispatcher()
"""

import logging
from typing import Optional

from .notifications import NotificationDispatcherInterface, NotificationFactory

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies and domain services.

    Implements lazy initialization and caching of service instances.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._notification_dispatcher: Optional[NotificationDispatcherInterface] = None
            self._clear_services()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear_services(self):
        self._notification_service = None
        self._activity_service = None
        self._inventory_service = None
        self._pricing_service = None
        self._cart_service = None
        self._order_service = None
        self._review_service = None
        self._stock_service = None

    def notification_dispatcher(self, backend: Optional[str] = None) -> NotificationDispatcherInterface:
        """
        Get notification dispatcher instance.

        Args:
            backend: 'event_bus' or 'mock'. If None, uses settings.INFRASTRUCTURE

        Returns:
            NotificationDispatcherInterface implementation (cached)
        """
        if self._notification_dispatcher is None or backend is not None:
            self._notification_dispatcher = NotificationFactory.create(backend)
            # Cached services hold a reference to the previous dispatcher
            self._clear_services()
            logger.debug(f"Created notification dispatcher: {type(self._notification_dispatcher).__name__}")

        return self._notification_dispatcher

    def notification_service(self):
        """Get NotificationService instance."""
        if self._notification_service is None:
            from marketplace.services import NotificationService

            self._notification_service = NotificationService(dispatcher=self.notification_dispatcher())
            logger.debug("Created NotificationService")
        return self._notification_service

    def activity_service(self):
        """Get ActivityLogService instance."""
        if self._activity_service is None:
            from activity.services import ActivityLogService

            self._activity_service = ActivityLogService()
            logger.debug("Created ActivityLogService")
        return self._activity_service

    def inventory_service(self):
        """Get InventoryService instance."""
        if self._inventory_service is None:
            from marketplace.services import InventoryService

            self._inventory_service = InventoryService()
            logger.debug("Created InventoryService")
        return self._inventory_service

    def pricing_service(self):
        """Get PricingService instance."""
        if self._pricing_service is None:
            from marketplace.services import PricingService

            self._pricing_service = PricingService()
            logger.debug("Created PricingService")
        return self._pricing_service

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.services import CartService

            self._cart_service = CartService(
                inventory_service=self.inventory_service(), pricing_service=self.pricing_service()
            )
            logger.debug("Created CartService")
        return self._cart_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.services import OrderService

            self._order_service = OrderService(
                cart_service=self.cart_service(),
                inventory_service=self.inventory_service(),
                pricing_service=self.pricing_service(),
                notification_service=self.notification_service(),
                activity_service=self.activity_service(),
            )
            logger.debug("Created OrderService")
        return self._order_service

    def review_service(self):
        """Get ReviewService instance."""
        if self._review_service is None:
            from marketplace.services import ReviewService

            self._review_service = ReviewService(notification_service=self.notification_service())
            logger.debug("Created ReviewService")
        return self._review_service

    def stock_service(self):
        """Get StockService instance."""
        if self._stock_service is None:
            from marketplace.services import StockService

            self._stock_service = StockService(
                inventory_service=self.inventory_service(),
                pricing_service=self.pricing_service(),
                activity_service=self.activity_service(),
                cart_service=self.cart_service(),
            )
            logger.debug("Created StockService")
        return self._stock_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._notification_dispatcher = None
        self._clear_services()
        logger.info("Service container reset")

    def configure_for_testing(self):
        """Swap in the in-memory notification dispatcher."""
        self.reset()
        self.notification_dispatcher("mock")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


def get_notification_dispatcher() -> NotificationDispatcherInterface:
    """Get notification dispatcher from global container."""
    return container.notification_dispatcher()
