# backend/hdu_core/audit/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hdu_core.audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True, allow_null=True)
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            "id",
            "timestamp",
            "user_id",
            "user_name",
            "action",
            "table_name",
            "record_id",
            "old_values",
            "new_values",
            "description",
        ]
        read_only_fields = fields

    def get_user_name(self, obj: AuditLog) -> str | None:
        if obj.user is None:
            return None
        profile = getattr(obj.user, "hdu_profile", None)
        if profile is not None and profile.name_with_initials:
            return profile.name_with_initials
        return obj.user.get_username()
