"""Request middleware for the Mercado API."""

from __future__ import annotations

import logging
import time
from typing import Callable


logger = logging.getLogger(__name__)


class JWTCSRFBypassMiddleware:
    """Exempt bearer-token requests from CSRF enforcement.

    Clients of the API authenticate with an ``Authorization: Bearer`` header
    and never send session cookies, so the CSRF check only applies to the
    session based admin pages.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if header.lower().startswith("bearer "):
            request._dont_enforce_csrf_checks = True  # type: ignore[attr-defined]
        return self.get_response(request)


class RequestLoggingMiddleware:
    """Log method, path, status and latency of every API request."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith("/api/"):
            return self.get_response(request)

        started = time.time()
        response = self.get_response(request)
        elapsed_ms = (time.time() - started) * 1000

        user = getattr(request, "user", None)
        user_id = getattr(user, "id", None) if user is not None and user.is_authenticated else None
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.path} -> {response.status_code} in {elapsed_ms:.2f}ms (user={user_id})",
        )
        return response
