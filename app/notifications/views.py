"""
Views for notification API.

Endpoints:
    GET    /api/v1/notifications/               - List own notifications
    GET    /api/v1/notifications/{id}/          - Notification detail
    DELETE /api/v1/notifications/{id}/          - Delete one
    GET    /api/v1/notifications/unread-count/  - Unread badge count
    POST   /api/v1/notifications/{id}/read/     - Mark one as read
    POST   /api/v1/notifications/read-all/      - Mark all as read
    POST   /api/v1/notifications/clear/         - Delete all
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.views import service_error_response
from notifications.models import Notification
from notifications.serializers import (
    ClearResponseSerializer,
    MarkAllReadResponseSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from notifications.services import NotificationService


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notifications",
        summary="List notifications",
        parameters=[
            OpenApiParameter(
                name="is_read",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Filter by read status (true/false)",
                required=False,
            ),
            OpenApiParameter(
                name="type",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by notification type",
                required=False,
            ),
        ],
        tags=["Notifications"],
    ),
    retrieve=extend_schema(
        operation_id="get_notification",
        summary="Get notification",
        tags=["Notifications"],
    ),
    destroy=extend_schema(
        operation_id="delete_notification",
        summary="Delete notification",
        tags=["Notifications"],
    ),
)
class NotificationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Notification inbox of the authenticated user.

    Users can only see and act on their own notifications; other users'
    rows are simply not found.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        queryset = Notification.objects.filter(recipient=self.request.user).select_related(
            "actor", "actor__profile"
        )

        is_read = self.request.query_params.get("is_read")
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == "true")

        notification_type = self.request.query_params.get("type")
        if notification_type:
            queryset = queryset.filter(notification_type=notification_type)

        return queryset

    def destroy(self, request, *args, **kwargs):
        result = NotificationService.delete_notification(self.get_object(), request.user)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Get unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = NotificationService.unread_count(request.user)
        return Response(UnreadCountSerializer({"unread_count": count}).data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark notification as read",
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Idempotent; 404 if the notification belongs to someone else."""
        result = NotificationService.mark_as_read(self.get_object(), request.user)
        if not result.success:
            return service_error_response(result)
        return Response(self.get_serializer(result.data).data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        result = NotificationService.mark_all_as_read(request.user)
        return Response(MarkAllReadResponseSerializer({"marked_count": result.data}).data)

    @extend_schema(
        operation_id="clear_notifications",
        summary="Delete all notifications",
        request=None,
        responses={200: ClearResponseSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"])
    def clear(self, request):
        result = NotificationService.clear_all(request.user)
        return Response(ClearResponseSerializer({"deleted_count": result.data}).data)
