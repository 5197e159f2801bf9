# backend/hdu_core/patients/api/serializers.py
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from hdu_core.common.serialization import to_jsonable
from hdu_core.patients.models import (
    Admission,
    BloodType,
    Department,
    EmergencyContact,
    Gender,
    MaritalStatus,
    MedicalRecord,
    Patient,
    PregnancyStatus,
    Relationship,
)


def active_admission_of(patient: Patient) -> Admission | None:
    prefetched = getattr(patient, "active_admissions", None)
    if prefetched is not None:
        return prefetched[0] if prefetched else None
    return patient.active_admission


def primary_contact_of(patient: Patient) -> EmergencyContact | None:
    contacts = [c for c in patient.emergency_contacts.all() if c.is_primary]
    return contacts[0] if contacts else None


# ----------------------------
# Read side
# ----------------------------
class AdmissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Admission
        fields = [
            "id",
            "department",
            "consultant_in_charge",
            "admission_datetime",
            "discharge_datetime",
            "discharge_notes",
            "status",
            "admitted_by_id",
        ]
        read_only_fields = fields


class MedicalRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = MedicalRecord
        fields = [
            "id",
            "known_allergies",
            "medical_history",
            "current_medications",
            "pregnancy_status",
            "blood_type",
            "initial_diagnosis",
        ]
        read_only_fields = fields


class EmergencyContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmergencyContact
        fields = ["id", "name", "relationship", "contact_number", "is_primary"]
        read_only_fields = fields


class PatientSummarySerializer(serializers.ModelSerializer):
    """
    Compact patient view, embedded in bed listings.
    """
    active_admission = serializers.SerializerMethodField()
    bed_number = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            "id",
            "patient_number",
            "full_name",
            "nic_passport",
            "age",
            "gender",
            "contact_number",
            "is_urgent_admission",
            "is_incomplete",
            "active_admission",
            "bed_number",
        ]
        read_only_fields = fields

    def get_active_admission(self, obj: Patient):
        admission = active_admission_of(obj)
        return AdmissionSerializer(admission).data if admission else None

    def get_bed_number(self, obj: Patient) -> int | None:
        bed = getattr(obj, "bed", None)
        return bed.bed_number if bed else None


class PatientDetailSerializer(PatientSummarySerializer):
    medical_record = serializers.SerializerMethodField()
    emergency_contact = serializers.SerializerMethodField()
    latest_vitals = serializers.SerializerMethodField()

    class Meta(PatientSummarySerializer.Meta):
        fields = PatientSummarySerializer.Meta.fields + [
            "date_of_birth",
            "marital_status",
            "email",
            "address",
            "medical_record",
            "emergency_contact",
            "latest_vitals",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_medical_record(self, obj: Patient):
        record = getattr(obj, "medical_record", None)
        return MedicalRecordSerializer(record).data if record else None

    def get_emergency_contact(self, obj: Patient):
        contact = primary_contact_of(obj)
        return EmergencyContactSerializer(contact).data if contact else None

    def get_latest_vitals(self, obj: Patient):
        sample = self.context.get("latest_sample")
        if sample is None:
            return None
        return {
            "id": str(sample.id),
            "recorded_at": sample.recorded_at,
            "values": to_jsonable(sample.as_sample()),
            "flags": self.context.get("flags", {}),
        }


# ----------------------------
# Write side
# ----------------------------
class AdmissionInputSerializer(serializers.Serializer):
    department = serializers.ChoiceField(choices=Department.choices, required=False)
    consultant_in_charge = serializers.CharField(max_length=255, required=False, allow_blank=True)
    admission_datetime = serializers.DateTimeField(required=False)


class MedicalRecordInputSerializer(serializers.Serializer):
    known_allergies = serializers.CharField(required=False, allow_blank=True)
    medical_history = serializers.CharField(required=False, allow_blank=True)
    current_medications = serializers.CharField(required=False, allow_blank=True)
    pregnancy_status = serializers.ChoiceField(choices=PregnancyStatus.choices, required=False)
    blood_type = serializers.ChoiceField(choices=BloodType.choices, required=False)
    initial_diagnosis = serializers.CharField(required=False, allow_blank=True)


class EmergencyContactInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    relationship = serializers.ChoiceField(choices=Relationship.choices, required=False)
    contact_number = serializers.CharField(max_length=32, required=False, allow_blank=True)


class PatientAdmissionSerializer(serializers.Serializer):
    """
    Admission / update payload. Patient fields are flat; dependents nest.
    Required-field rules depend on ``is_urgent_admission`` and are enforced
    by the service.
    """
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    nic_passport = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    marital_status = serializers.ChoiceField(choices=MaritalStatus.choices, required=False, allow_blank=True)
    contact_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    is_urgent_admission = serializers.BooleanField(required=False, default=False)

    admission = AdmissionInputSerializer(required=False)
    medical_record = MedicalRecordInputSerializer(required=False)
    emergency_contact = EmergencyContactInputSerializer(required=False)

    def validate_date_of_birth(self, value):
        if value and value > timezone.localdate():
            raise serializers.ValidationError("Date of birth cannot be in the future.")
        return value


class DischargeSerializer(serializers.Serializer):
    discharge_reason = serializers.CharField()
    doctor_comments = serializers.CharField()
    discharge_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    follow_up_required = serializers.BooleanField(required=False, default=False)
    follow_up_date = serializers.DateField(required=False, allow_null=True, default=None)
    medications_prescribed = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs.get("follow_up_required") and not attrs.get("follow_up_date"):
            raise serializers.ValidationError({"follow_up_date": ["Required when a follow-up is requested."]})
        return attrs
