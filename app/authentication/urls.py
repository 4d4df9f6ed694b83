"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/                    - Create account
    /api/v1/auth/token/                       - Obtain JWT pair (simplejwt)
    /api/v1/auth/token/refresh/               - Refresh access token
    /api/v1/auth/token/blacklist/             - Log out (blacklist refresh)
    /api/v1/auth/me/                          - Own profile (GET/PATCH)
    /api/v1/auth/presence/                    - Set presence status
    /api/v1/auth/presence/heartbeat/          - Presence heartbeat
    /api/v1/auth/users/<id>/presence/         - Another user's presence
"""

from django.urls import path
from rest_framework_simplejwt.views import (
    TokenBlacklistView,
    TokenObtainPairView,
    TokenRefreshView,
)

from authentication.views import (
    HeartbeatView,
    MeView,
    PresenceView,
    RegisterView,
    UserPresenceView,
)

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("token/blacklist/", TokenBlacklistView.as_view(), name="token-blacklist"),
    path("me/", MeView.as_view(), name="me"),
    path("presence/", PresenceView.as_view(), name="presence"),
    path("presence/heartbeat/", HeartbeatView.as_view(), name="presence-heartbeat"),
    path(
        "users/<int:user_id>/presence/",
        UserPresenceView.as_view(),
        name="user-presence",
    ),
]
