from django.contrib import admin

from hdu_core.vital_signs.models import VitalSignsConfig


@admin.register(VitalSignsConfig)
class VitalSignsConfigAdmin(admin.ModelAdmin):
    list_display = ("display_order", "name", "label", "unit", "normal_range_min", "normal_range_max", "is_active")
    list_display_links = ("name",)
    list_filter = ("is_active", "data_type")
    search_fields = ("name", "label")
    ordering = ("display_order", "name")
