"""
Marketplace Service Layer

Business logic for the marketplace app, organized into domain services.
Every public method returns a ServiceResult instead of raising for
expected failures.

Services:
- CartService: Shopping cart operations
- InventoryService: Stock ledger (availability, decrements, restocks)
- PricingService: Money rounding and totals
- OrderService: Checkout, status state machine, cancellation, tracking
- ReviewService: Product/supplier reviews, replies and rating aggregates
- StockService: Supplier stock, price and dashboard operations
- NotificationService: Notification outbox

Usage:
    from infrastructure.container import container

    result = container.cart_service().add_item(request.user, product_id, 2)
    if result.ok:
        cart = result.value
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceAbort, ServiceResult, paginate, service_err, service_ok
from marketplace.cart.domain.services import CartService, InventoryService, PricingService
from marketplace.catalog.domain.services import ReviewService
from marketplace.notifications.domain.services import NotificationService
from marketplace.ordering.domain.services import OrderService
from marketplace.suppliers.domain.services import StockService

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    "ServiceAbort",
    # Helper functions
    "service_ok",
    "service_err",
    "paginate",
    # Error codes
    "ErrorCodes",
    # Services
    "CartService",
    "InventoryService",
    "PricingService",
    "OrderService",
    "ReviewService",
    "StockService",
    "NotificationService",
]
