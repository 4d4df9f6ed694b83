"""
Core views providing infrastructure endpoints and response helpers.

This module contains views that are not part of the chat domain but are
essential for running the API, such as the health check, plus the helper
every domain view uses to turn a failed ServiceResult into a response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from core.services import ServiceResult

# Path pattern for UUID primary keys in routers and URLconfs
UUID_PATTERN = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"

# Error codes that mean "you may not do this" rather than "this is invalid"
FORBIDDEN_ERROR_CODES = frozenset(
    {
        "FORBIDDEN",
        "NOT_MEMBER",
        "NOT_OWNER",
        "NOT_RECEIVER",
        "NOT_CONNECTED",
    }
)


def service_error_response(result: ServiceResult) -> Response:
    """
    Build the error response for a failed service call.

    Authorization codes map to 403, not-found codes to 404 and everything
    else (validation, conflicts, business rules) to 400. The body always
    carries ``error`` and ``error_code``; field errors are included when the
    service supplied them.
    """
    code = result.error_code or ""
    if code in FORBIDDEN_ERROR_CODES:
        status_code = status.HTTP_403_FORBIDDEN
    elif code == "NOT_FOUND" or code.endswith("_NOT_FOUND"):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    body = {"error": result.error, "error_code": result.error_code}
    if result.errors:
        body["errors"] = result.errors
    return Response(body, status=status_code)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        # Cache outages degrade presence lookups only
        health_status["cache"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
