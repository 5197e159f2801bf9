# backend/hdu_core/beds/models.py
from django.db import models

from hdu_core.common.models import TimeStampedModel
from hdu_core.patients.models import Patient


class Bed(TimeStampedModel):
    """
    Fixed HDU bed pool. Available when ``patient`` is null, occupied otherwise.

    The link is weak: deleting a patient frees the bed, it never deletes it.
    One-to-one so a patient can never sit in two beds.
    """
    bed_number = models.PositiveSmallIntegerField(unique=True)
    patient = models.OneToOneField(
        Patient,
        on_delete=models.SET_NULL,
        related_name="bed",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "beds"
        ordering = ["bed_number"]

    def __str__(self) -> str:
        return f"Bed {self.bed_number} ({self.status})"

    @property
    def is_occupied(self) -> bool:
        return self.patient_id is not None

    @property
    def status(self) -> str:
        return "occupied" if self.is_occupied else "available"
