"""
URL configuration for connections API.

Routes:
    /                  - List (GET), request (POST)
    /pending/          - Requests awaiting an answer (GET)
    /{id}/             - Remove (DELETE)
    /{id}/respond/     - Accept or reject (POST)
"""

from rest_framework.routers import DefaultRouter

from connections.views import ConnectionViewSet

router = DefaultRouter()
router.register(r"", ConnectionViewSet, basename="connection")

app_name = "connections"
urlpatterns = router.urls
