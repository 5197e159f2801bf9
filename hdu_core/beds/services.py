# backend/hdu_core/beds/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.db import DatabaseError, transaction
from django.utils import timezone

from hdu_core.audit.services import AuditService
from hdu_core.beds.invariants import assert_patient_placement
from hdu_core.beds.models import Bed
from hdu_core.common.db import retry_on_db_conflict
from hdu_core.common.exceptions import ConflictError
from hdu_core.common.serialization import model_snapshot
from hdu_core.documents.services import DocumentService
from hdu_core.patients.models import Admission, AdmissionStatus, Patient
from hdu_core.patients.services import PatientService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BedAssignment:
    bed: Bed
    patient: Patient
    admission: Admission
    patient_created: bool


@dataclass(frozen=True)
class BedRelease:
    bed: Bed
    patient_id: Any
    admissions_closed: int
    documents_removed: int


class BedService:
    """
    Bed state machine: Available (no patient) <-> Occupied.
    """

    @staticmethod
    def assign(*, actor_id: int | None, bed_id: int, patient_data: dict[str, Any]) -> BedAssignment:
        """
        Admit (or re-admit) the patient, then claim the bed with a conditional
        update. The admission commits on its own: when the claim loses a race
        the patient row stays for manual reconciliation and only the admission
        opened here is closed again.
        """
        bed = Bed.objects.get(id=bed_id)
        if bed.is_occupied:
            raise ConflictError("Bed is already occupied")

        result = PatientService.admit(actor_id=actor_id, data=patient_data)

        try:
            claimed = BedService._claim(bed=bed, patient=result.patient)
        except ConflictError:
            BedService._close_unplaced_admission(actor_id=actor_id, admission=result.admission)
            raise

        if not claimed:
            logger.warning(
                "Bed %s was taken concurrently while admitting %s; patient kept for reconciliation",
                bed.bed_number,
                result.patient.patient_number,
            )
            BedService._close_unplaced_admission(actor_id=actor_id, admission=result.admission)
            raise ConflictError("Bed was assigned to another patient at the same time. Please retry.")

        bed.refresh_from_db()
        logger.info("Bed %s assigned to %s by %s", bed.bed_number, result.patient.patient_number, actor_id)
        return BedAssignment(
            bed=bed,
            patient=result.patient,
            admission=result.admission,
            patient_created=result.created,
        )

    @staticmethod
    @retry_on_db_conflict()
    @transaction.atomic
    def _claim(*, bed: Bed, patient: Patient) -> bool:
        if Bed.objects.filter(patient_id=patient.id).exists():
            raise ConflictError("Patient already occupies a bed")

        # Compare-and-swap: only claim the bed if nobody took it since we read it.
        claimed = Bed.objects.filter(id=bed.id, patient__isnull=True).update(
            patient=patient,
            updated_at=timezone.now(),
        )
        if claimed:
            assert_patient_placement(patient_id=patient.id)
        return bool(claimed)

    @staticmethod
    @transaction.atomic
    def _close_unplaced_admission(*, actor_id: int | None, admission: Admission) -> None:
        admission = Admission.objects.select_for_update().get(id=admission.id)
        old_state = model_snapshot(admission)
        admission.status = AdmissionStatus.DISCHARGED
        admission.discharge_datetime = timezone.now()
        admission.discharge_notes = "Bed assignment failed"
        admission.save(update_fields=["status", "discharge_datetime", "discharge_notes", "updated_at"])
        AuditService.record_update(
            actor_id=actor_id,
            instance=admission,
            old_state=old_state,
            description="Admission closed after a lost bed assignment",
        )

    @staticmethod
    @retry_on_db_conflict()
    @transaction.atomic
    def deassign(*, actor_id: int | None, bed_id: int) -> BedRelease:
        bed = Bed.objects.select_for_update().get(id=bed_id)
        if not bed.is_occupied:
            raise ConflictError("Bed is not occupied")

        patient_id = bed.patient_id
        now = timezone.now()

        closed = 0
        for admission in Admission.objects.select_for_update().filter(
            patient_id=patient_id,
            status=AdmissionStatus.ACTIVE,
        ):
            old_state = model_snapshot(admission)
            admission.status = AdmissionStatus.DISCHARGED
            admission.discharge_datetime = now
            admission.save(update_fields=["status", "discharge_datetime", "updated_at"])
            AuditService.record_update(
                actor_id=actor_id,
                instance=admission,
                old_state=old_state,
                description=f"Discharged from bed {bed.bed_number}",
            )
            closed += 1

        # Document cleanup must never keep the bed occupied.
        removed = 0
        try:
            with transaction.atomic():
                removed = DocumentService.purge_for_patient(patient_id=patient_id)
        except DatabaseError:
            logger.exception("Document cleanup failed for patient %s; releasing bed %s anyway", patient_id, bed.bed_number)

        Bed.objects.filter(id=bed.id).update(patient=None, updated_at=now)
        assert_patient_placement(patient_id=patient_id)
        bed.refresh_from_db()

        logger.info("Bed %s released by %s (%s documents removed)", bed.bed_number, actor_id, removed)
        return BedRelease(bed=bed, patient_id=patient_id, admissions_closed=closed, documents_removed=removed)
