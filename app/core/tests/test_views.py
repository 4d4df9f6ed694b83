"""
Tests for core views and response helpers.

These tests verify that:
- Failed ServiceResults map to the right HTTP status
- The health check reports database and cache state
- The OpenAPI schema renders with the tag descriptions
"""

from unittest.mock import patch

import pytest
from django.urls import reverse
from rest_framework import status

from core.services import ServiceResult
from core.views import service_error_response


class TestServiceErrorResponse:
    """Tests for service_error_response()."""

    @pytest.mark.parametrize(
        "error_code,expected",
        [
            ("FORBIDDEN", status.HTTP_403_FORBIDDEN),
            ("NOT_MEMBER", status.HTTP_403_FORBIDDEN),
            ("NOT_OWNER", status.HTTP_403_FORBIDDEN),
            ("NOT_RECEIVER", status.HTTP_403_FORBIDDEN),
            ("NOT_CONNECTED", status.HTTP_403_FORBIDDEN),
            ("NOT_FOUND", status.HTTP_404_NOT_FOUND),
            ("GROUP_NOT_FOUND", status.HTTP_404_NOT_FOUND),
            ("USER_NOT_FOUND", status.HTTP_404_NOT_FOUND),
            ("VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST),
            ("GROUP_NAME_EXISTS", status.HTTP_400_BAD_REQUEST),
            (None, status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_status_mapping(self, error_code, expected):
        response = service_error_response(ServiceResult.failure("x", error_code=error_code))

        assert response.status_code == expected

    def test_body_includes_field_errors(self):
        response = service_error_response(
            ServiceResult.failure(
                "User not found",
                error_code="USER_NOT_FOUND",
                errors={"user_exists": [False]},
            )
        )

        assert response.data == {
            "error": "User not found",
            "error_code": "USER_NOT_FOUND",
            "errors": {"user_exists": [False]},
        }

    def test_body_without_field_errors(self):
        response = service_error_response(ServiceResult.failure("nope", error_code="FORBIDDEN"))

        assert "errors" not in response.data


class TestHealthCheck:
    """Tests for GET /health/."""

    def test_healthy(self, db, client):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_plain_http_not_redirected(self, db, client):
        """
        Requests over http are answered, not bounced to https.

        Why it matters: TLS is terminated in front of the app, so a redirect
        here would hide every endpoint behind a 301.
        """
        response = client.get(reverse("health_check"), secure=False)

        assert response.status_code == 200
        assert "Location" not in response

    def test_cache_outage_is_not_fatal(self, db, client):
        with patch("django.core.cache.cache", **{"set.side_effect": ConnectionError("down")}):
            response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"


class TestSchema:
    """Tests for the OpenAPI schema endpoint."""

    def test_schema_has_chat_tags(self, db, client):
        response = client.get(reverse("schema"), {"format": "json"})

        assert response.status_code == 200
        tags = {tag["name"] for tag in response.json()["tags"]}
        assert {"Chat - Groups", "Connections", "Notifications"} <= tags
