# backend/hdu_core/critical_factors/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hdu_core.common.serialization import to_jsonable
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.vital_signs.thresholds import classify


class CriticalFactorSerializer(serializers.ModelSerializer):
    vitals = serializers.SerializerMethodField()
    flags = serializers.SerializerMethodField()

    class Meta:
        model = CriticalFactor
        fields = [
            "id",
            "patient_id",
            "recorded_at",
            "heart_rate",
            "respiratory_rate",
            "blood_pressure_systolic",
            "blood_pressure_diastolic",
            "spo2",
            "temperature",
            "glasgow_coma_scale",
            "pain_scale",
            "blood_glucose",
            "urine_output",
            "dynamic_vitals",
            "vitals",
            "flags",
            "recorded_by_id",
            "is_amended",
            "amended_by_id",
            "amended_at",
            "amendment_reason",
            "created_at",
        ]
        read_only_fields = fields

    def get_vitals(self, obj: CriticalFactor) -> dict:
        return to_jsonable(obj.as_sample())

    def get_flags(self, obj: CriticalFactor) -> dict:
        configs = self.context.get("configs")
        if configs is None:
            return {}
        return classify(obj.as_sample(), configs)


class VitalsInputSerializer(serializers.Serializer):
    """
    One vitals sample. Keys that are not standard columns are collected
    into ``dynamic_vitals``.
    """
    recorded_at = serializers.DateTimeField(required=False)
    heart_rate = serializers.IntegerField(min_value=0, max_value=400, required=False, allow_null=True)
    respiratory_rate = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    blood_pressure_systolic = serializers.IntegerField(min_value=0, max_value=400, required=False, allow_null=True)
    blood_pressure_diastolic = serializers.IntegerField(min_value=0, max_value=300, required=False, allow_null=True)
    spo2 = serializers.IntegerField(min_value=0, max_value=100, required=False, allow_null=True)
    temperature = serializers.DecimalField(max_digits=4, decimal_places=1, required=False, allow_null=True)
    glasgow_coma_scale = serializers.IntegerField(min_value=3, max_value=15, required=False, allow_null=True)
    pain_scale = serializers.IntegerField(min_value=0, max_value=10, required=False, allow_null=True)
    blood_glucose = serializers.IntegerField(min_value=0, max_value=2000, required=False, allow_null=True)
    urine_output = serializers.DecimalField(max_digits=6, decimal_places=2, required=False, allow_null=True)
    dynamic_vitals = serializers.DictField(required=False)

    def to_internal_value(self, data):
        validated = super().to_internal_value(data)
        extras = {k: v for k, v in data.items() if k not in self.fields}
        if extras:
            validated["dynamic_vitals"] = {**extras, **validated.get("dynamic_vitals", {})}
        return validated


class VitalsAmendSerializer(VitalsInputSerializer):
    amendment_reason = serializers.CharField()
