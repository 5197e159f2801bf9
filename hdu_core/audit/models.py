# backend/hdu_core/audit/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class AuditAction(models.TextChoices):
    CREATE = "CREATE", "Create"
    UPDATE = "UPDATE", "Update"
    DELETE = "DELETE", "Delete"
    ACKNOWLEDGE = "ACKNOWLEDGE", "Acknowledge"


class AuditLog(models.Model):
    """
    Append-only change record. ``(table_name, record_id)`` identifies the target row.

    CREATE / ACKNOWLEDGE: ``new_values`` is the full snapshot.
    UPDATE: ``new_values`` holds ``{field: {"old", "new"}}`` for changed fields only,
    ``old_values`` the full pre-state.
    """
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="audit_logs",
        null=True,
        blank=True,
    )
    action = models.CharField(max_length=16, choices=AuditAction.choices, db_index=True)
    table_name = models.CharField(max_length=64, db_index=True)
    record_id = models.CharField(max_length=64)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["table_name", "record_id"]),
            models.Index(fields=["action", "timestamp"]),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.table_name}:{self.record_id}"
