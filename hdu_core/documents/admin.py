from django.contrib import admin

from hdu_core.documents.models import PatientDocument


@admin.register(PatientDocument)
class PatientDocumentAdmin(admin.ModelAdmin):
    list_display = ("file_name", "document_type", "patient", "file_type", "file_size", "created_at")
    list_filter = ("document_type",)
    search_fields = ("file_name", "patient__patient_number", "patient__full_name")
    readonly_fields = ("created_at", "updated_at")
