# backend/hdu_core/patients/selectors.py
from __future__ import annotations

from collections import defaultdict
from typing import Any

from django.db.models import Count, OuterRef, Prefetch, Q, QuerySet, Subquery
from django.utils import timezone

from hdu_core.audit.models import AuditLog
from hdu_core.audit.selectors import history_for_targets
from hdu_core.beds.selectors import occupancy_summary
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.patients.models import Admission, AdmissionStatus, Patient
from hdu_core.patients.services import PatientService
from hdu_core.vital_signs.selectors import active_configs
from hdu_core.vital_signs.thresholds import classify

SECONDS_PER_DAY = 86400


def patients_qs(*, q: str | None = None, is_incomplete: bool | None = None) -> QuerySet[Patient]:
    qs = (
        Patient.objects.select_related("bed", "medical_record")
        .prefetch_related(
            "emergency_contacts",
            Prefetch(
                "admissions",
                queryset=Admission.objects.filter(status=AdmissionStatus.ACTIVE).order_by("-admission_datetime"),
                to_attr="active_admissions",
            ),
        )
        .order_by("-created_at")
    )
    if q:
        qs = qs.filter(
            Q(full_name__icontains=q)
            | Q(patient_number__icontains=q)
            | Q(nic_passport__icontains=q)
        )
    if is_incomplete is not None:
        qs = qs.filter(is_incomplete=is_incomplete)
    return qs


def patient_detail(*, patient_id) -> Patient:
    return patients_qs().get(id=patient_id)


def latest_sample(*, patient_id) -> CriticalFactor | None:
    return CriticalFactor.objects.filter(patient_id=patient_id).order_by("-recorded_at").first()


def latest_samples() -> QuerySet[CriticalFactor]:
    """
    The most recent vitals sample of every patient that has one.
    """
    newest = (
        CriticalFactor.objects.filter(patient_id=OuterRef("patient_id"))
        .order_by("-recorded_at")
        .values("id")[:1]
    )
    return CriticalFactor.objects.filter(id=Subquery(newest))


def patient_analytics() -> dict[str, Any]:
    configs = list(active_configs())
    critical = sum(1 for sample in latest_samples() if classify(sample.as_sample(), configs))

    genders = {
        (row["gender"] or "Unknown"): row["total"]
        for row in Patient.objects.values("gender").annotate(total=Count("id")).order_by("gender")
    }

    return {
        "total_patients": Patient.objects.count(),
        "active_admissions": Admission.objects.filter(status=AdmissionStatus.ACTIVE).count(),
        "incomplete_patients": Patient.objects.filter(is_incomplete=True).count(),
        "urgent_admissions": Patient.objects.filter(is_urgent_admission=True).count(),
        "critical_patients": critical,
        "gender_distribution": genders,
        "bed_occupancy": occupancy_summary(),
    }


def _days(seconds: float) -> float:
    return round(seconds / SECONDS_PER_DAY, 2)


def length_of_stay() -> dict[str, Any]:
    """
    Stay statistics in days. Discharged patients are erased, so completed
    stays only cover admissions whose patient is still on record.
    """
    now = timezone.now()

    completed = Admission.objects.filter(
        status=AdmissionStatus.DISCHARGED,
        discharge_datetime__isnull=False,
    ).values_list("department", "admission_datetime", "discharge_datetime")

    durations: list[float] = []
    by_department: dict[str, list[float]] = defaultdict(list)
    for department, admitted, discharged in completed:
        seconds = max((discharged - admitted).total_seconds(), 0)
        durations.append(seconds)
        by_department[department].append(seconds)

    current = [
        max((now - admitted).total_seconds(), 0)
        for admitted in Admission.objects.filter(status=AdmissionStatus.ACTIVE).values_list(
            "admission_datetime", flat=True
        )
    ]

    return {
        "completed_stays": len(durations),
        "average_days": _days(sum(durations) / len(durations)) if durations else 0,
        "min_days": _days(min(durations)) if durations else 0,
        "max_days": _days(max(durations)) if durations else 0,
        "current_patients": len(current),
        "current_average_days": _days(sum(current) / len(current)) if current else 0,
        "by_department": {
            department: {"count": len(values), "average_days": _days(sum(values) / len(values))}
            for department, values in sorted(by_department.items())
        },
    }


def change_history(*, patient_id) -> QuerySet[AuditLog]:
    patient = Patient.objects.get(id=patient_id)
    return history_for_targets(targets=PatientService.audit_targets(patient))
