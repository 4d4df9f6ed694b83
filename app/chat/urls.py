"""
URL configuration for chat API.

URL Structure:
    Groups (router):
        /groups/                                   GET, POST
        /groups/name-availability/                 GET
        /groups/{id}/                              GET, PATCH, DELETE
        /groups/{id}/members/                      GET, POST
        /groups/{id}/members/{user_id}/            PATCH, DELETE
        /groups/{id}/leave/                        POST
        /groups/{id}/transfer-ownership/           POST
        /groups/{id}/accept-invitation/            POST
        /groups/{id}/reject-invitation/            POST
        /groups/{id}/messages/                     GET, POST
        /groups/{id}/messages/{message_id}/        DELETE
        /groups/{id}/messages/delivered/           POST
        /groups/{id}/messages/read/                POST

    Direct messages:
        /direct/{user_id}/messages/                GET, POST
        /direct/{user_id}/delivered/               POST
        /direct/{user_id}/read/                    POST
        /direct/{user_id}/clear/                   POST
        /direct/messages/{message_id}/             DELETE

    Mentions:
        /mentions/                                 GET
        /mentions/{id}/read/                       POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    DirectClearView,
    DirectConversationView,
    DirectDeliveredView,
    DirectMessageDetailView,
    DirectReadView,
    GroupViewSet,
    MentionListView,
    MentionReadView,
)

router = DefaultRouter()
router.register(r"groups", GroupViewSet, basename="group")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path(
        "direct/messages/<uuid:message_id>/",
        DirectMessageDetailView.as_view(),
        name="direct-message-detail",
    ),
    path(
        "direct/<int:user_id>/messages/",
        DirectConversationView.as_view(),
        name="direct-messages",
    ),
    path(
        "direct/<int:user_id>/delivered/",
        DirectDeliveredView.as_view(),
        name="direct-delivered",
    ),
    path("direct/<int:user_id>/read/", DirectReadView.as_view(), name="direct-read"),
    path("direct/<int:user_id>/clear/", DirectClearView.as_view(), name="direct-clear"),
    path("mentions/", MentionListView.as_view(), name="mention-list"),
    path(
        "mentions/<uuid:mention_id>/read/",
        MentionReadView.as_view(),
        name="mention-read",
    ),
]
