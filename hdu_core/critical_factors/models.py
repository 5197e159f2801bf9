# backend/hdu_core/critical_factors/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from hdu_core.common.models import UUIDModel
from hdu_core.patients.models import Patient

# Vitals with a dedicated column. Anything else recorded goes to dynamic_vitals.
STANDARD_VITALS = (
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
)


class CriticalFactor(UUIDModel):
    """
    Point-in-time vitals sample. Immutable apart from the amendment path,
    which requires a reason and stamps who amended it and when.
    """
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="critical_factors")
    recorded_at = models.DateTimeField(default=timezone.now, db_index=True)

    heart_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    respiratory_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_systolic = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveSmallIntegerField(null=True, blank=True)
    spo2 = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    glasgow_coma_scale = models.PositiveSmallIntegerField(null=True, blank=True)
    pain_scale = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_glucose = models.PositiveSmallIntegerField(null=True, blank=True)
    urine_output = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)

    # name -> number | text, checked against VitalSignsConfig.data_type on write
    dynamic_vitals = models.JSONField(default=dict, blank=True)

    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="vitals_recorded",
        null=True,
        blank=True,
    )

    is_amended = models.BooleanField(default=False)
    amended_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="vitals_amended",
        null=True,
        blank=True,
    )
    amended_at = models.DateTimeField(null=True, blank=True)
    amendment_reason = models.TextField(blank=True)

    class Meta:
        db_table = "critical_factors"
        ordering = ["-recorded_at"]
        indexes = [
            models.Index(fields=["patient", "recorded_at"]),
        ]

    def __str__(self) -> str:
        return f"Vitals {self.patient_id} @ {self.recorded_at:%Y-%m-%d %H:%M}"

    def as_sample(self) -> dict:
        """
        Flat ``name -> value`` view used by threshold evaluation.
        """
        sample = dict(self.dynamic_vitals or {})
        for name in STANDARD_VITALS:
            value = getattr(self, name)
            if value is not None:
                sample[name] = value
        return sample
