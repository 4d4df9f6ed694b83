import uuid

import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
        ),
    ]


def uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            help_text="Unique identifier for this record",
            primary_key=True,
            serialize=False,
        ),
    )


def attachment_fields():
    return [
        (
            "file_url",
            models.URLField(blank=True, help_text="Location of the attached file", max_length=1000, null=True),
        ),
        ("file_name", models.CharField(blank=True, default="", help_text="Original file name", max_length=255)),
        ("file_size", models.PositiveBigIntegerField(blank=True, help_text="File size in bytes", null=True)),
        ("file_type", models.CharField(blank=True, default="", help_text="MIME type of the file", max_length=100)),
    ]


MESSAGE_TYPE_CHOICES = [("text", "Text"), ("image", "Image"), ("file", "File")]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Group",
            fields=[
                *timestamps(),
                uuid_pk(),
                ("name", models.CharField(help_text="Group name (unique, case-insensitive)", max_length=100)),
                ("description", models.TextField(blank=True, default="", help_text="Group description")),
                (
                    "avatar_url",
                    models.URLField(
                        blank=True, help_text="Location of the group avatar image", max_length=500, null=True
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Group owner",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="owned_groups",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_group",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("name"),
                        name="unique_group_name_case_insensitive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *timestamps(),
                (
                    "role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("member", "Member")],
                        default="member",
                        help_text="Member role",
                        max_length=10,
                    ),
                ),
                (
                    "joined_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, help_text="When the user joined the group"
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Group this membership belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="chat.group",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Member user",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="group_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_member",
                "ordering": ["joined_at"],
                "indexes": [
                    models.Index(fields=["group", "role"], name="chat_member_group_role_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("group", "user"), name="unique_group_member"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DirectMessage",
            fields=[
                *timestamps(),
                *attachment_fields(),
                uuid_pk(),
                ("content", models.TextField(blank=True, default="", help_text="Message text")),
                (
                    "message_type",
                    models.CharField(
                        choices=MESSAGE_TYPE_CHOICES,
                        default="text",
                        help_text="Kind of message content",
                        max_length=10,
                    ),
                ),
                (
                    "timestamp",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now, help_text="When the message was sent"
                    ),
                ),
                ("deleted_for_sender", models.BooleanField(default=False, help_text="Hidden from the sender")),
                ("deleted_for_receiver", models.BooleanField(default=False, help_text="Hidden from the receiver")),
                (
                    "deleted_for_everyone",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Retracted by the sender for both parties"
                    ),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True, help_text="When the receiver's client acknowledged the message", null=True
                    ),
                ),
                (
                    "read_at",
                    models.DateTimeField(blank=True, help_text="When the receiver read the message", null=True),
                ),
                (
                    "receiver",
                    models.ForeignKey(
                        help_text="User the message was sent to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_direct_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent the message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_direct_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_message",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["sender", "receiver", "-timestamp"], name="chat_dm_pair_time_idx"),
                    models.Index(fields=["receiver", "delivered_at"], name="chat_dm_receiver_delivery_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("sender", models.F("receiver")), _negated=True),
                        name="direct_message_not_to_self",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupMessage",
            fields=[
                *timestamps(),
                *attachment_fields(),
                uuid_pk(),
                (
                    "author_kind",
                    models.CharField(
                        choices=[("user", "User"), ("system", "System")],
                        default="user",
                        help_text="Whether a member or the system authored the message",
                        max_length=10,
                    ),
                ),
                ("content", models.TextField(blank=True, default="", help_text="Message text")),
                (
                    "message_type",
                    models.CharField(
                        choices=MESSAGE_TYPE_CHOICES,
                        default="text",
                        help_text="Kind of message content",
                        max_length=10,
                    ),
                ),
                (
                    "system_event",
                    models.JSONField(
                        blank=True, help_text="Structured system event: {'event': str, 'data': dict}", null=True
                    ),
                ),
                (
                    "timestamp",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now, help_text="When the message was sent"
                    ),
                ),
                (
                    "deleted_for_everyone",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Retracted by the sender for all members"
                    ),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When another member's client first acknowledged the message",
                        null=True,
                    ),
                ),
                (
                    "read_at",
                    models.DateTimeField(blank=True, help_text="When another member first read the message", null=True),
                ),
                (
                    "group",
                    models.ForeignKey(
                        help_text="Group the message was sent in",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.group",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="Author (NULL for system messages)",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_group_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_group_message",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["group", "-timestamp"], name="chat_gm_group_time_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("author_kind", "system"), ("sender__isnull", True)),
                            models.Q(("author_kind", "user"), ("sender__isnull", False)),
                            _connector="OR",
                        ),
                        name="group_message_author_matches_sender",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="GroupMessageDeletion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *timestamps(),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Hidden message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deletions",
                        to="chat.groupmessage",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Member who hid the message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deleted_group_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_group_message_deletion",
                "constraints": [
                    models.UniqueConstraint(fields=("message", "user"), name="unique_group_message_deletion"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Mention",
            fields=[
                *timestamps(),
                uuid_pk(),
                (
                    "is_read",
                    models.BooleanField(default=False, help_text="Whether the mentioned member has seen the mention"),
                ),
                (
                    "mentioned_by",
                    models.ForeignKey(
                        help_text="Author of the mentioning message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "mentioned_user",
                    models.ForeignKey(
                        help_text="Member who was mentioned",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="mentions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message containing the mention",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="mentions",
                        to="chat.groupmessage",
                    ),
                ),
            ],
            options={
                "db_table": "chat_mention",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["mentioned_user", "is_read"], name="chat_mention_user_read_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("message", "mentioned_user"), name="unique_message_mention"),
                ],
            },
        ),
    ]
