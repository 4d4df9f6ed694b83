"""
Connection service layer.

Manages the contact graph: requests, responses and the "are these two
users connected" check other apps rely on.

Lifecycle:
    (absent) -> pending -> accepted | rejected

Accepted and rejected rows never change status again. Asking again after a
rejection replaces the rejected row with a fresh pending one in the same
transaction, so a pair never has more than one row.

Usage:
    from connections.services import ConnectionService

    result = ConnectionService.request_connection(requester, receiver)
    result = ConnectionService.respond_to_connection(connection_id, receiver, accept=True)
    ConnectionService.are_users_connected(user_a.id, user_b.id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.utils import timezone

from connections.models import Connection
from core.realtime import publish_to_user
from core.services import BaseService, ServiceResult
from notifications.models import NotificationKind
from notifications.services import NotificationService

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

logger = logging.getLogger(__name__)


class ConnectionService(BaseService):
    """
    Service for connection requests and responses.

    Methods:
        request_connection: Create a pending request and notify the receiver
        respond_to_connection: Accept or reject (receiver only)
        remove_connection: Delete a pending/accepted row (either party)
        are_users_connected: Accepted connection exists for the pair
        get_connected_user_ids: Ids of every accepted contact of a user
        list_connections / list_pending_requests: Read helpers for the API
    """

    @classmethod
    def request_connection(cls, requester: User, receiver: User) -> ServiceResult[Connection]:
        """
        Ask ``receiver`` to connect.

        Error codes:
            SELF_CONNECTION: requester and receiver are the same user
            CONNECTION_EXISTS: a pending or accepted row already exists
        """
        if requester.pk == receiver.pk:
            return ServiceResult.failure(
                "You cannot connect with yourself",
                error_code="SELF_CONNECTION",
            )

        existing = Connection.objects.between(requester.pk, receiver.pk).first()
        if existing is not None and existing.status != Connection.Status.REJECTED:
            return ServiceResult.failure(
                "A connection already exists between these users",
                error_code="CONNECTION_EXISTS",
            )

        try:
            with cls.atomic():
                if existing is not None:
                    # Terminal rejected rows are replaced, never reopened
                    existing.delete()

                connection = Connection.objects.create(
                    requester=requester,
                    receiver=receiver,
                )

                NotificationService.create_notification(
                    recipient=receiver,
                    notification_type=NotificationKind.CONNECTION_REQUEST,
                    content=f"{requester.get_full_name()} wants to connect with you",
                    data={
                        "requester_id": requester.pk,
                        "requester_name": requester.get_full_name(),
                        "requester_email": requester.email,
                        "connection_id": str(connection.id),
                    },
                    actor=requester,
                )
        except IntegrityError:
            # Lost a race with a concurrent request for the same pair
            return ServiceResult.failure(
                "A connection already exists between these users",
                error_code="CONNECTION_EXISTS",
            )

        cls.get_logger().info(
            f"Connection {connection.id} requested by {requester.pk} for {receiver.pk}"
        )
        return ServiceResult.success(connection)

    @classmethod
    def respond_to_connection(
        cls, connection_id, responder: User, accept: bool
    ) -> ServiceResult[Connection]:
        """
        Accept or reject a pending request.

        Only the receiver may respond. The receiver's original
        connection_request notification is updated in place to reference
        the connection and its outcome; it is marked read on accept.

        Error codes:
            NOT_FOUND: no such connection
            NOT_RECEIVER: responder is not the receiver
            ALREADY_RESPONDED: the connection is no longer pending
        """
        with cls.atomic():
            connection = (
                Connection.objects.select_for_update()
                .filter(pk=connection_id)
                .first()
            )
            if connection is None:
                return ServiceResult.failure("Connection not found", error_code="NOT_FOUND")

            if connection.receiver_id != responder.pk:
                cls.get_logger().warning(
                    f"User {responder.pk} attempted to respond to connection {connection.id}"
                )
                return ServiceResult.failure(
                    "Only the receiver can respond to a connection request",
                    error_code="NOT_RECEIVER",
                )

            if connection.status != Connection.Status.PENDING:
                return ServiceResult.failure(
                    f"Connection already {connection.status}",
                    error_code="ALREADY_RESPONDED",
                )

            connection.status = (
                Connection.Status.ACCEPTED if accept else Connection.Status.REJECTED
            )
            connection.responded_at = timezone.now()
            connection.save(update_fields=["status", "responded_at", "updated_at"])

            cls._update_request_notifications(connection)

        publish_to_user(
            connection.requester_id,
            "connection.updated",
            {"connection_id": connection.id, "status": connection.status},
        )
        cls.get_logger().info(f"Connection {connection.id} {connection.status}")
        return ServiceResult.success(connection)

    @classmethod
    def _update_request_notifications(cls, connection: Connection) -> None:
        """
        Point the originating request notification(s) at the answered row.

        Best-effort: a failure here is logged and never undoes the response.
        """
        try:
            with cls.atomic():
                notifications = NotificationService.connection_requests_from(
                    connection.receiver_id, connection.requester_id
                )
                for notification in notifications:
                    notification.data = {
                        **notification.data,
                        "connection_id": str(connection.id),
                        "status": connection.status,
                    }
                    if connection.status == Connection.Status.ACCEPTED:
                        notification.is_read = True
                    notification.save(update_fields=["data", "is_read", "updated_at"])
        except Exception:
            cls.get_logger().exception(
                f"Failed to update request notification for connection {connection.id}"
            )

    @classmethod
    def remove_connection(cls, connection_id, user: User) -> ServiceResult[None]:
        """
        Delete a connection or withdraw a request.

        Error codes:
            NOT_FOUND: no such connection, or the user is not a party to it
        """
        connection = Connection.objects.involving(user.pk).filter(pk=connection_id).first()
        if connection is None:
            return ServiceResult.failure("Connection not found", error_code="NOT_FOUND")

        connection.delete()
        cls.get_logger().info(f"Connection {connection_id} removed by {user.pk}")
        return ServiceResult.success(None)

    @staticmethod
    def are_users_connected(user_a_id, user_b_id) -> bool:
        if user_a_id == user_b_id:
            return False
        return Connection.objects.between(user_a_id, user_b_id).accepted().exists()

    @staticmethod
    def get_connected_user_ids(user: User) -> list:
        ids = []
        for requester_id, receiver_id in (
            Connection.objects.involving(user.pk)
            .accepted()
            .values_list("requester_id", "receiver_id")
        ):
            ids.append(receiver_id if requester_id == user.pk else requester_id)
        return ids

    @staticmethod
    def list_connections(user: User, status: str | None = None) -> QuerySet[Connection]:
        queryset = Connection.objects.involving(user.pk).select_related(
            "requester__profile", "receiver__profile"
        )
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    @staticmethod
    def list_pending_requests(user: User) -> QuerySet[Connection]:
        """Requests waiting for ``user`` to answer."""
        return Connection.objects.filter(
            receiver=user, status=Connection.Status.PENDING
        ).select_related("requester__profile")
