"""
ServiceResult -> HTTP translation shared by the marketplace views.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from marketplace.services import ErrorCodes, ServiceResult

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    # Not found
    ErrorCodes.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.CART_ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.REVIEW_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.SUPPLIER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # Forbidden
    ErrorCodes.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCodes.NOT_ORDER_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCodes.NOT_PRODUCT_OWNER: status.HTTP_403_FORBIDDEN,
    # Invalid state
    ErrorCodes.CART_EMPTY: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.PRODUCT_UNAVAILABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INSUFFICIENT_STOCK: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_ORDER_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.ORDER_CANNOT_CANCEL: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.ORDER_NOT_DELIVERED: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.PRODUCT_NOT_IN_ORDER: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.SUPPLIER_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_STATUS_TRANSITION: status.HTTP_400_BAD_REQUEST,
    # Conflict
    ErrorCodes.DUPLICATE_REVIEW: status.HTTP_409_CONFLICT,
    # Validation
    ErrorCodes.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
}


def error_status(error: str) -> int:
    return ERROR_STATUS.get(error, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult as {"detail", "error"} with the mapped status code."""
    http_status = error_status(result.error)
    if http_status >= 500:
        logger.error(f"Service failure surfaced to client: {result.error} - {result.error_detail}")
    return Response({"detail": result.error_detail, "error": result.error}, status=http_status)


def validation_error_response(errors) -> Response:
    return Response(
        {"detail": errors, "error": ErrorCodes.INVALID_INPUT},
        status=status.HTTP_400_BAD_REQUEST,
    )


def page_params(request, default_page_size: int = 20):
    """Read ``page`` / ``page_size`` query params, falling back to defaults on junk."""
    try:
        page = int(request.query_params.get("page", 1))
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(request.query_params.get("page_size", default_page_size))
    except (TypeError, ValueError):
        page_size = default_page_size
    return page, page_size
