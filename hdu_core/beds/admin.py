from django.contrib import admin

from hdu_core.beds.models import Bed


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ("bed_number", "status", "patient", "updated_at")
    search_fields = ("patient__patient_number", "patient__full_name")
    raw_id_fields = ("patient",)
    ordering = ("bed_number",)
