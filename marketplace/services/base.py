"""
Base classes and utilities for the service layer.

This module provides the ServiceResult pattern (inspired by Rust's Result type)
and BaseService class for all marketplace services.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected failures (missing rows, forbidden access, illegal state changes)
    are returned as values instead of being raised.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = service_ok(order_snapshot)
        >>> if result.ok:
        ...     return Response(OrderSerializer(result.value).data, 200)

        >>> result = service_err("order_not_found", "Order 123 does not exist")
        >>> print(result.error)  # "order_not_found"
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'success' and either 'data' or 'error'
        """
        if self.ok:
            return {"success": True, "data": self.value}
        return {
            "success": False,
            "error": {"code": self.error, "message": self.error_detail},
        }


def service_ok(value: T) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Example:
        >>> return service_ok(CartSnapshot.from_model(cart))
    """
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "product_not_found", "invalid_quantity")
        error_detail: Human-readable error message

    Example:
        >>> return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {id} does not exist")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class ServiceAbort(Exception):
    """
    Carries a failed ServiceResult out of a ``transaction.atomic()`` block.

    Raising it inside the block rolls back every write made so far; the
    service method catches it outside the block and returns ``result``.

    Example:
        try:
            with transaction.atomic():
                ...
                raise ServiceAbort(service_err(ErrorCodes.INSUFFICIENT_STOCK, "..."))
        except ServiceAbort as abort:
            return abort.result
    """

    def __init__(self, result: ServiceResult):
        super().__init__(result.error_detail)
        self.result = result


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class StockService(BaseService):
            def __init__(self, inventory_service):
                super().__init__()
                self.inventory_service = inventory_service

            @BaseService.log_performance
            def get_stock_status(self, product_id):
                self.logger.info(f"Reading stock for {product_id}")
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time, failure codes and any exceptions that occur.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across marketplace services."""

    # Not found
    PRODUCT_NOT_FOUND = "product_not_found"
    ORDER_NOT_FOUND = "order_not_found"
    CART_ITEM_NOT_FOUND = "cart_item_not_found"
    REVIEW_NOT_FOUND = "review_not_found"
    SUPPLIER_NOT_FOUND = "supplier_not_found"

    # Permission errors
    PERMISSION_DENIED = "permission_denied"
    NOT_ORDER_OWNER = "not_order_owner"
    NOT_PRODUCT_OWNER = "not_product_owner"

    # Cart / stock state
    CART_EMPTY = "cart_empty"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    INSUFFICIENT_STOCK = "insufficient_stock"

    # Order state
    INVALID_ORDER_STATE = "invalid_order_state"
    ORDER_CANNOT_CANCEL = "order_cannot_cancel"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"

    # Review state
    ORDER_NOT_DELIVERED = "order_not_delivered"
    PRODUCT_NOT_IN_ORDER = "product_not_in_order"
    SUPPLIER_MISMATCH = "supplier_mismatch"
    DUPLICATE_REVIEW = "duplicate_review"

    # Validation errors
    INVALID_INPUT = "invalid_input"
    INVALID_QUANTITY = "invalid_quantity"

    # Internal errors
    INTERNAL_ERROR = "internal_error"


MAX_PAGE_SIZE = 100


def paginate(queryset, page: int = 1, page_size: int = 20, transform: Callable = None) -> dict:
    """
    Slice a queryset into one page.

    Returns:
        {"results", "count", "page", "page_size", "num_pages"}; ``transform``
        is applied to every row of the page when given
    """
    page = max(int(page or 1), 1)
    page_size = min(max(int(page_size or 20), 1), MAX_PAGE_SIZE)

    offset = (page - 1) * page_size
    total_count = queryset.count()
    rows = list(queryset[offset : offset + page_size])

    return {
        "results": [transform(row) for row in rows] if transform else rows,
        "count": total_count,
        "page": page,
        "page_size": page_size,
        "num_pages": (total_count + page_size - 1) // page_size,
    }
