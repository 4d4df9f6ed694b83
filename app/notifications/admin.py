"""
Django admin configuration for notification models.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-mostly view of derived notifications."""

    list_display = ["id", "recipient", "notification_type", "is_read", "created_at"]
    list_filter = ["notification_type", "is_read"]
    search_fields = ["recipient__email", "content"]
    raw_id_fields = ["recipient", "actor"]
    readonly_fields = ["created_at", "updated_at"]
