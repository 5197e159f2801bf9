from django.contrib import admin

from hdu_core.critical_factors.models import CriticalFactor


@admin.register(CriticalFactor)
class CriticalFactorAdmin(admin.ModelAdmin):
    list_display = ("patient", "recorded_at", "heart_rate", "spo2", "temperature", "is_amended")
    list_filter = ("is_amended",)
    search_fields = ("patient__patient_number", "patient__full_name")
    readonly_fields = ("created_at", "updated_at", "amended_by", "amended_at")
    date_hierarchy = "recorded_at"
