"""
Django admin configuration for connections.
"""

from django.contrib import admin

from connections.models import Connection


@admin.register(Connection)
class ConnectionAdmin(admin.ModelAdmin):
    list_display = ["id", "requester", "receiver", "status", "created_at", "responded_at"]
    list_filter = ["status"]
    search_fields = ["requester__email", "receiver__email"]
    raw_id_fields = ["requester", "receiver"]
    readonly_fields = ["user_lower", "user_higher", "created_at", "updated_at"]
