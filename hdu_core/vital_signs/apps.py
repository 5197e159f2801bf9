from django.apps import AppConfig


class VitalSignsConfigApp(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hdu_core.vital_signs"
    label = "vital_signs"
