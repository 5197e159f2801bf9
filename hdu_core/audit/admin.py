# backend/hdu_core/audit/admin.py
from django.contrib import admin

from hdu_core.audit.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "action", "table_name", "record_id", "user")
    list_filter = ("action", "table_name")
    search_fields = ("record_id", "description")
    readonly_fields = ("timestamp", "user", "action", "table_name", "record_id", "old_values", "new_values", "description")
    ordering = ("-timestamp",)
