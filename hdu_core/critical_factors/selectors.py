# backend/hdu_core/critical_factors/selectors.py
from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings
from django.db.models import QuerySet
from django.utils import timezone

from hdu_core.audit.models import AuditLog
from hdu_core.audit.selectors import history_for
from hdu_core.common.serialization import to_jsonable
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.vital_signs.selectors import active_configs
from hdu_core.vital_signs.thresholds import classify

NO_BED = "N/A"


def samples_for_patient(*, patient_id) -> QuerySet[CriticalFactor]:
    return (
        CriticalFactor.objects.filter(patient_id=patient_id)
        .select_related("recorded_by", "amended_by")
        .order_by("-recorded_at")
    )


def sample_history(*, factor_id) -> QuerySet[AuditLog]:
    factor = CriticalFactor.objects.only("id").get(id=factor_id)
    return history_for(table_name=CriticalFactor._meta.db_table, record_id=factor.id)


def critical_patients(*, hours: int | None = None) -> list[dict[str, Any]]:
    """
    Patients with at least one out-of-range sample in the last ``hours``.

    Every sample in the window is re-evaluated against the ranges active
    right now, so editing a config changes the answer immediately.
    """
    hours = hours or settings.HDU_CRITICAL_LOOKBACK_HOURS
    since = timezone.now() - timedelta(hours=hours)
    configs = list(active_configs())

    samples = (
        CriticalFactor.objects.filter(recorded_at__gte=since)
        .select_related("patient", "patient__bed")
        .order_by("-recorded_at")
    )

    grouped: dict[Any, dict[str, Any]] = {}
    for sample in samples:
        flags = classify(sample.as_sample(), configs)
        if not flags:
            continue

        patient = sample.patient
        entry = grouped.get(patient.id)
        if entry is None:
            bed = getattr(patient, "bed", None)
            entry = grouped[patient.id] = {
                "patient_id": str(patient.id),
                "patient_number": patient.patient_number,
                "full_name": patient.full_name,
                "bed_number": bed.bed_number if bed else NO_BED,
                "latest_critical_at": sample.recorded_at,
                "critical_samples": [],
            }
        entry["critical_samples"].append(
            {
                "id": str(sample.id),
                "recorded_at": sample.recorded_at,
                "flags": flags,
                "values": to_jsonable(sample.as_sample()),
            }
        )

    return sorted(grouped.values(), key=lambda e: e["latest_critical_at"], reverse=True)
