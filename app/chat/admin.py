"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Group management with member inline
- Direct and group message moderation
- Mentions
"""

from django.contrib import admin

from chat.models import DirectMessage, Group, GroupMessage, Member, Mention


class MemberInline(admin.TabularInline):
    """Inline display of members in group admin."""

    model = Member
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "created_by", "created_at", "updated_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["created_by"]
    inlines = [MemberInline]
    ordering = ["-created_at"]


@admin.register(DirectMessage)
class DirectMessageAdmin(admin.ModelAdmin):
    """Admin interface for direct messages."""

    list_display = [
        "id",
        "sender",
        "receiver",
        "message_type",
        "timestamp",
        "deleted_for_everyone",
        "read_at",
    ]
    list_filter = ["message_type", "deleted_for_everyone", "timestamp"]
    search_fields = ["content", "sender__email", "receiver__email"]
    raw_id_fields = ["sender", "receiver"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["-timestamp"]


@admin.register(GroupMessage)
class GroupMessageAdmin(admin.ModelAdmin):
    """Admin interface for group messages."""

    list_display = [
        "id",
        "group",
        "author_kind",
        "sender",
        "message_type",
        "timestamp",
        "deleted_for_everyone",
    ]
    list_filter = ["author_kind", "message_type", "deleted_for_everyone"]
    search_fields = ["content", "group__name", "sender__email"]
    raw_id_fields = ["group", "sender"]
    readonly_fields = ["system_event", "created_at", "updated_at"]
    ordering = ["-timestamp"]


@admin.register(Mention)
class MentionAdmin(admin.ModelAdmin):
    list_display = ["id", "message", "mentioned_user", "mentioned_by", "is_read", "created_at"]
    list_filter = ["is_read"]
    raw_id_fields = ["message", "mentioned_user", "mentioned_by"]
