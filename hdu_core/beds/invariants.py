# backend/hdu_core/beds/invariants.py
"""
Cross-entity rules the schema cannot express on its own:

- a patient occupies at most one bed
- a patient holds at most one Active admission
- an occupied bed's patient has exactly one Active admission

Checked inside the transaction after every bed transition.
"""
from __future__ import annotations

import logging

from rest_framework.exceptions import APIException

from hdu_core.beds.models import Bed
from hdu_core.patients.models import Admission, AdmissionStatus

logger = logging.getLogger(__name__)


class BedInvariantError(APIException):
    status_code = 500
    default_detail = "Bed/admission consistency check failed."
    default_code = "bed_invariant_violation"


def placement_problems(*, patient_id) -> list[str]:
    beds = Bed.objects.filter(patient_id=patient_id).count()
    active = Admission.objects.filter(patient_id=patient_id, status=AdmissionStatus.ACTIVE).count()

    problems: list[str] = []
    if beds > 1:
        problems.append(f"patient occupies {beds} beds")
    if active > 1:
        problems.append(f"patient has {active} active admissions")
    if beds == 1 and active != 1:
        problems.append("occupied bed without exactly one active admission")
    return problems


def assert_patient_placement(*, patient_id) -> None:
    problems = placement_problems(patient_id=patient_id)
    if problems:
        logger.error("Placement invariant broken for patient %s: %s", patient_id, "; ".join(problems))
        raise BedInvariantError({"detail": BedInvariantError.default_detail, "problems": problems})


def check_bed_invariants() -> dict[int, list[str]]:
    """
    ``{bed_number: problems}`` for every occupied bed that breaks a rule.
    """
    report: dict[int, list[str]] = {}
    for bed in Bed.objects.filter(patient__isnull=False).only("bed_number", "patient_id"):
        problems = placement_problems(patient_id=bed.patient_id)
        if problems:
            report[bed.bed_number] = problems
    return report
