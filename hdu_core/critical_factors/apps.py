from django.apps import AppConfig


class CriticalFactorsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hdu_core.critical_factors"
