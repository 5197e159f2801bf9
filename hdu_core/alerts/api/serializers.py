from __future__ import annotations

from rest_framework import serializers


class AcknowledgeAlertSerializer(serializers.Serializer):
    alert_id = serializers.CharField(max_length=64)
    alert_type = serializers.CharField(max_length=64)
    patient_id = serializers.UUIDField(required=False, allow_null=True)
    bed_number = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    acknowledged_by = serializers.CharField(max_length=255, required=False, allow_blank=True)


class AlertAnalyticsQuerySerializer(serializers.Serializer):
    timeRange = serializers.IntegerField(min_value=1, max_value=365, required=False, default=7)
