"""
URL configuration for the groupchat backend.

URL Structure:
    /                              - ReDoc API documentation
    /docs/                         - ReDoc API documentation
    /schema/                       - OpenAPI schema (YAML)
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /api/v1/auth/                  - Registration, JWT tokens, profile, presence
    /api/v1/connections/           - Connection requests and responses
    /api/v1/chat/                  - Groups, members, direct/group messages, mentions
    /api/v1/notifications/         - Notifications
    ws/chat/?token=<jwt>           - WebSocket event stream (config/asgi.py)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("connections/", include("connections.urls")),
    path("chat/", include("chat.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("docs/", SpectacularRedocView.as_view(url_name="schema"), name="docs"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Groupchat Admin"
admin.site.site_title = "Groupchat Admin"
admin.site.index_title = "Administration"
