# backend/hdu_core/beds/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hdu_core.beds.models import Bed
from hdu_core.patients.api.serializers import (
    EmergencyContactSerializer,
    MedicalRecordSerializer,
    PatientSummarySerializer,
    primary_contact_of,
)


class BedPatientSerializer(PatientSummarySerializer):
    medical_record = serializers.SerializerMethodField()
    emergency_contact = serializers.SerializerMethodField()

    class Meta(PatientSummarySerializer.Meta):
        fields = [f for f in PatientSummarySerializer.Meta.fields if f != "bed_number"] + [
            "medical_record",
            "emergency_contact",
        ]
        read_only_fields = fields

    def get_medical_record(self, obj):
        record = getattr(obj, "medical_record", None)
        return MedicalRecordSerializer(record).data if record else None

    def get_emergency_contact(self, obj):
        contact = primary_contact_of(obj)
        return EmergencyContactSerializer(contact).data if contact else None


class BedSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    patient = BedPatientSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Bed
        fields = ["id", "bed_number", "status", "patient", "updated_at"]
        read_only_fields = fields


class BedStatusQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=["occupied", "available"])
