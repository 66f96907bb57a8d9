# notifications/admin.py

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "store", "type", "priority", "read", "created_at")
    list_filter = ("type", "priority", "read")
    search_fields = ("title", "message")
    readonly_fields = ("store", "type", "title", "message", "metadata", "created_at")
