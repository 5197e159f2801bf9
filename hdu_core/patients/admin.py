from django.contrib import admin

from hdu_core.patients.models import Admission, EmergencyContact, MedicalRecord, Patient


class AdmissionInline(admin.TabularInline):
    model = Admission
    extra = 0
    fields = ("department", "consultant_in_charge", "status", "admission_datetime", "discharge_datetime")


class EmergencyContactInline(admin.TabularInline):
    model = EmergencyContact
    extra = 0


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("patient_number", "full_name", "gender", "age", "is_urgent_admission", "is_incomplete")
    list_filter = ("gender", "is_urgent_admission", "is_incomplete")
    search_fields = ("patient_number", "full_name", "nic_passport")
    readonly_fields = ("patient_number", "created_at", "updated_at")
    inlines = [AdmissionInline, EmergencyContactInline]


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ("patient", "blood_type", "pregnancy_status")
    search_fields = ("patient__patient_number", "patient__full_name")
