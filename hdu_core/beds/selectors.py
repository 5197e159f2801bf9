# backend/hdu_core/beds/selectors.py
from __future__ import annotations

from typing import Any

import django_filters
from django.db.models import Prefetch, QuerySet

from hdu_core.beds.models import Bed
from hdu_core.patients.models import Admission, AdmissionStatus


def beds_qs() -> QuerySet[Bed]:
    return (
        Bed.objects.select_related("patient", "patient__medical_record")
        .prefetch_related(
            "patient__emergency_contacts",
            Prefetch(
                "patient__admissions",
                queryset=Admission.objects.filter(status=AdmissionStatus.ACTIVE).order_by("-admission_datetime"),
                to_attr="active_admissions",
            ),
        )
        .order_by("bed_number")
    )


class BedFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        choices=[("occupied", "Occupied"), ("available", "Available")],
        method="filter_status",
    )

    class Meta:
        model = Bed
        fields = ["status"]

    def filter_status(self, queryset, name, value):
        return queryset.filter(patient__isnull=(value == "available"))


def occupancy_summary() -> dict[str, Any]:
    total = Bed.objects.count()
    occupied = Bed.objects.filter(patient__isnull=False).count()
    rate = round(occupied / total * 100, 2) if total else 0
    return {"total": total, "occupied": occupied, "available": total - occupied, "rate": rate}
