"""
Connection model: the contact graph between users.

A Connection is created by the requester and answered by the receiver.
Accepted and rejected are terminal. At most one row exists per unordered
user pair, enforced by storing the pair in canonical order.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ConnectionQuerySet(models.QuerySet):
    def between(self, user_a_id, user_b_id):
        """Rows for the unordered pair (a, b)."""
        lower, higher = sorted([user_a_id, user_b_id])
        return self.filter(user_lower_id=lower, user_higher_id=higher)

    def involving(self, user_id):
        return self.filter(Q(requester_id=user_id) | Q(receiver_id=user_id))

    def accepted(self):
        return self.filter(status=Connection.Status.ACCEPTED)

    def active(self):
        """Pending or accepted; these block a new request for the pair."""
        return self.filter(
            status__in=[Connection.Status.PENDING, Connection.Status.ACCEPTED]
        )


class Connection(UUIDPrimaryKeyMixin, BaseModel):
    """
    A contact request between two users and its outcome.

    Fields:
        requester: User who sent the request
        receiver: User who may accept or reject it
        user_lower / user_higher: The same pair in canonical order (lower id
            first), derived on save
        status: pending, accepted or rejected
        responded_at: When the receiver answered

    Constraints:
        - UniqueConstraint(user_lower, user_higher): one row per pair
        - CheckConstraint(user_lower_id < user_higher_id): canonical order,
          which also rules out connecting to yourself
    """

    class Status(models.TextChoices):
        """Connection lifecycle states. Accepted and rejected are terminal."""

        PENDING = "pending", "Pending"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_connection_requests",
        help_text="User who requested the connection",
    )

    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_connection_requests",
        help_text="User who was asked to connect",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this pair",
    )

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
        help_text="Connection status",
    )

    responded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the receiver accepted or rejected the request",
    )

    objects = ConnectionQuerySet.as_manager()

    class Meta:
        db_table = "connections_connection"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_connection_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="connection_user_lower_less_than_higher",
            ),
        ]
        indexes = [
            models.Index(
                fields=["receiver", "status"],
                name="conn_receiver_status_idx",
            ),
            models.Index(
                fields=["requester", "status"],
                name="conn_requester_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Connection({self.requester_id} -> {self.receiver_id}, {self.status})"

    def save(self, *args, **kwargs):
        lower, higher = sorted([self.requester_id, self.receiver_id])
        self.user_lower_id = lower
        self.user_higher_id = higher
        super().save(*args, **kwargs)

    def other_user_id(self, user_id):
        return self.receiver_id if self.requester_id == user_id else self.requester_id
