"""
Views for the connections API.

Endpoints:
    GET    /api/v1/connections/                - Own connections (?status=)
    POST   /api/v1/connections/                - Send a request
    GET    /api/v1/connections/pending/        - Requests awaiting my answer
    POST   /api/v1/connections/{id}/respond/   - Accept or reject
    DELETE /api/v1/connections/{id}/           - Remove / withdraw
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from connections.serializers import (
    ConnectionRequestSerializer,
    ConnectionResponseSerializer,
    ConnectionSerializer,
)
from connections.services import ConnectionService
from core.views import UUID_PATTERN, service_error_response


@extend_schema_view(
    list=extend_schema(
        operation_id="list_connections",
        summary="List connections",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                description="pending, accepted or rejected",
                required=False,
            ),
        ],
        tags=["Connections"],
    ),
)
class ConnectionViewSet(viewsets.GenericViewSet):
    """Connections of the authenticated user."""

    permission_classes = [IsAuthenticated]
    serializer_class = ConnectionSerializer
    lookup_value_regex = UUID_PATTERN

    def get_queryset(self):
        return ConnectionService.list_connections(
            self.request.user, status=self.request.query_params.get("status")
        )

    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(self.get_queryset(), many=True).data)

    @extend_schema(
        operation_id="request_connection",
        summary="Send connection request",
        request=ConnectionRequestSerializer,
        responses={201: ConnectionSerializer},
        tags=["Connections"],
    )
    def create(self, request):
        serializer = ConnectionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConnectionService.request_connection(
            request.user, serializer.validated_data["receiver"]
        )
        if not result.success:
            return service_error_response(result)
        return Response(ConnectionSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="remove_connection",
        summary="Remove connection",
        tags=["Connections"],
    )
    def destroy(self, request, pk=None):
        result = ConnectionService.remove_connection(pk, request.user)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="list_pending_connection_requests",
        summary="List pending requests",
        responses={200: ConnectionSerializer(many=True)},
        tags=["Connections"],
    )
    @action(detail=False, methods=["get"])
    def pending(self, request):
        queryset = ConnectionService.list_pending_requests(request.user)
        return Response(ConnectionSerializer(queryset, many=True).data)

    @extend_schema(
        operation_id="respond_to_connection",
        summary="Accept or reject a request",
        request=ConnectionResponseSerializer,
        responses={200: ConnectionSerializer},
        tags=["Connections"],
    )
    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        serializer = ConnectionResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConnectionService.respond_to_connection(
            pk, request.user, accept=serializer.validated_data["accept"]
        )
        if not result.success:
            return service_error_response(result)
        return Response(ConnectionSerializer(result.data).data)
