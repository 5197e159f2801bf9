# backend/hdu_core/vital_signs/models.py
from django.db import models

from hdu_core.common.models import TimeStampedModel


class VitalDataType(models.TextChoices):
    INTEGER = "integer", "Integer"
    DECIMAL = "decimal", "Decimal"
    TEXT = "text", "Text"


class VitalSignsConfig(TimeStampedModel):
    """
    Admin-editable definition of a trackable vital sign.
    ``name`` is the stable key used on vitals samples; only active rows are
    consulted when classifying samples.
    """
    name = models.CharField(max_length=64, unique=True)
    label = models.CharField(max_length=128)
    unit = models.CharField(max_length=32, blank=True)
    normal_range_min = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    normal_range_max = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    data_type = models.CharField(max_length=16, choices=VitalDataType.choices, default=VitalDataType.DECIMAL)
    is_active = models.BooleanField(default=True, db_index=True)
    display_order = models.PositiveIntegerField(default=0)
    description = models.TextField(blank=True)

    class Meta:
        db_table = "vital_signs_config"
        ordering = ["display_order", "name"]

    def __str__(self) -> str:
        return f"{self.label} ({self.name})"
