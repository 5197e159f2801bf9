# backend/hdu_core/patients/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.db.models.functions import Length
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from hdu_core.audit.services import AuditService
from hdu_core.beds.models import Bed
from hdu_core.common.db import retry_on_db_conflict
from hdu_core.common.exceptions import ConflictError
from hdu_core.common.serialization import model_snapshot
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.documents.models import PatientDocument
from hdu_core.documents.services import DocumentService
from hdu_core.patients.models import (
    Admission,
    AdmissionStatus,
    EmergencyContact,
    MedicalRecord,
    Patient,
)

logger = logging.getLogger(__name__)

PATIENT_NUMBER_PREFIX = "PT"
PATIENT_NUMBER_ATTEMPTS = 5

PATIENT_FIELDS = (
    "full_name",
    "nic_passport",
    "date_of_birth",
    "age",
    "gender",
    "marital_status",
    "contact_number",
    "email",
    "address",
)
NULLABLE_PATIENT_FIELDS = ("nic_passport", "date_of_birth", "age")
ADMISSION_FIELDS = ("department", "consultant_in_charge", "admission_datetime")
MEDICAL_RECORD_FIELDS = (
    "known_allergies",
    "medical_history",
    "current_medications",
    "pregnancy_status",
    "blood_type",
    "initial_diagnosis",
)
EMERGENCY_CONTACT_FIELDS = ("name", "relationship", "contact_number")


def generate_patient_number(*, year: int | None = None) -> str:
    """
    ``PT-<year>-NNNN``: one past the highest number issued this calendar year.
    """
    year = year or timezone.localdate().year
    prefix = f"{PATIENT_NUMBER_PREFIX}-{year}-"

    last = (
        Patient.objects.filter(patient_number__startswith=prefix)
        .order_by(Length("patient_number").desc(), "-patient_number")
        .values_list("patient_number", flat=True)
        .first()
    )

    sequence = 1
    if last:
        try:
            sequence = int(last[len(prefix):]) + 1
        except ValueError:
            sequence = Patient.objects.filter(patient_number__startswith=prefix).count() + 1
    return f"{prefix}{sequence:04d}"


def _age_from_dob(dob: date, today: date | None = None) -> int:
    today = today or timezone.localdate()
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def _clean_nic(value: Any) -> str | None:
    value = (value or "").strip() if isinstance(value, str) else value
    return value or None


def _has_identity(patient: Patient) -> bool:
    return bool(patient.full_name and patient.gender)


@dataclass(frozen=True)
class AdmissionResult:
    patient: Patient
    admission: Admission
    created: bool


class PatientService:
    """
    Write-model operations for the patient aggregate
    (patient, admissions, medical record, emergency contacts).
    """

    # ----------------------------
    # Admission
    # ----------------------------
    @staticmethod
    @retry_on_db_conflict()
    @transaction.atomic
    def admit(*, actor_id: int | None, data: dict[str, Any]) -> AdmissionResult:
        """
        Reuse the patient matched by NIC/passport, otherwise register a new one.
        """
        nic = _clean_nic(data.get("nic_passport"))
        existing = None
        if nic:
            existing = Patient.objects.select_for_update().filter(nic_passport=nic).first()

        if existing is not None:
            admission = PatientService.admit_existing(actor_id=actor_id, patient=existing, data=data)
            return AdmissionResult(patient=existing, admission=admission, created=False)

        patient, admission = PatientService.admit_new(actor_id=actor_id, data=data)
        return AdmissionResult(patient=patient, admission=admission, created=True)

    @staticmethod
    @transaction.atomic
    def admit_new(*, actor_id: int | None, data: dict[str, Any]) -> tuple[Patient, Admission]:
        urgent = bool(data.get("is_urgent_admission"))
        fields = {k: data[k] for k in PATIENT_FIELDS if data.get(k) is not None}
        fields["nic_passport"] = _clean_nic(fields.get("nic_passport"))

        if not urgent:
            missing = [f for f in ("full_name", "gender") if not fields.get(f)]
            if missing:
                raise ValidationError({f: ["This field is required."] for f in missing})

        if fields.get("date_of_birth") and fields.get("age") is None:
            fields["age"] = _age_from_dob(fields["date_of_birth"])

        patient = PatientService._create_patient(
            is_urgent_admission=urgent,
            is_incomplete=not (fields.get("full_name") and fields.get("gender")),
            **fields,
        )
        AuditService.record_create(
            actor_id=actor_id,
            instance=patient,
            description=f"{'Urgent' if urgent else 'New'} admission of patient {patient.patient_number}",
        )

        PatientService._upsert_medical_record(actor_id=actor_id, patient=patient, data=data.get("medical_record") or {})
        PatientService._upsert_primary_contact(
            actor_id=actor_id,
            patient=patient,
            data=data.get("emergency_contact") or {},
        )
        admission = PatientService._open_admission(actor_id=actor_id, patient=patient, data=data.get("admission") or {})

        logger.info("Admitted new patient %s (urgent=%s)", patient.patient_number, urgent)
        return patient, admission

    @staticmethod
    @transaction.atomic
    def admit_existing(*, actor_id: int | None, patient: Patient, data: dict[str, Any]) -> Admission:
        if patient.admissions.filter(status=AdmissionStatus.ACTIVE).exists():
            raise ConflictError("Patient already has an active admission.")

        updates = {k: data[k] for k in PATIENT_FIELDS if k != "nic_passport" and data.get(k) not in (None, "")}
        if updates:
            PatientService._apply_patient_fields(actor_id=actor_id, patient=patient, data=updates)

        if data.get("medical_record"):
            PatientService._upsert_medical_record(actor_id=actor_id, patient=patient, data=data["medical_record"])
        if data.get("emergency_contact"):
            PatientService._upsert_primary_contact(actor_id=actor_id, patient=patient, data=data["emergency_contact"])

        admission = PatientService._open_admission(actor_id=actor_id, patient=patient, data=data.get("admission") or {})
        logger.info("Re-admitted existing patient %s", patient.patient_number)
        return admission

    # ----------------------------
    # Updates
    # ----------------------------
    @staticmethod
    @transaction.atomic
    def update_patient(*, actor_id: int | None, patient_id, data: dict[str, Any]) -> Patient:
        patient = Patient.objects.select_for_update().get(id=patient_id)

        patient_updates = {k: data[k] for k in PATIENT_FIELDS if k in data}
        if patient_updates:
            PatientService._apply_patient_fields(actor_id=actor_id, patient=patient, data=patient_updates)

        if data.get("medical_record"):
            PatientService._upsert_medical_record(actor_id=actor_id, patient=patient, data=data["medical_record"])
        if data.get("emergency_contact"):
            PatientService._upsert_primary_contact(actor_id=actor_id, patient=patient, data=data["emergency_contact"])

        admission_updates = {k: v for k, v in (data.get("admission") or {}).items() if k in ADMISSION_FIELDS}
        if admission_updates:
            admission = (
                patient.admissions.select_for_update()
                .filter(status=AdmissionStatus.ACTIVE)
                .order_by("-admission_datetime")
                .first()
            )
            if admission is None:
                raise ConflictError("Patient has no active admission to update.")
            old_state = model_snapshot(admission)
            for key, value in admission_updates.items():
                setattr(admission, key, value)
            admission.save()
            AuditService.record_update(actor_id=actor_id, instance=admission, old_state=old_state)

        return patient

    @staticmethod
    @transaction.atomic
    def complete_incomplete_patient(*, actor_id: int | None, patient_id, data: dict[str, Any]) -> Patient:
        """
        Fill in an urgent admission. Full name and gender are mandatory once done.
        """
        patient = PatientService.update_patient(actor_id=actor_id, patient_id=patient_id, data=data)
        if not _has_identity(patient):
            missing = [f for f in ("full_name", "gender") if not getattr(patient, f)]
            raise ValidationError({f: ["This field is required."] for f in missing})
        return patient

    # ----------------------------
    # Discharge (irreversible)
    # ----------------------------
    @staticmethod
    @transaction.atomic
    def discharge(*, actor_id: int | None, patient_id, data: dict[str, Any]) -> dict[str, Any]:
        """
        Close the stay, free the bed and permanently erase the patient together
        with every dependent row, file and audit entry. Returns a summary built
        before the erasure.
        """
        missing = [f for f in ("discharge_reason", "doctor_comments") if not (data.get(f) or "").strip()]
        if missing:
            raise ValidationError({f: ["This field is required."] for f in missing})

        patient = Patient.objects.select_for_update().get(id=patient_id)
        now = timezone.now()

        admission = (
            patient.admissions.select_for_update()
            .filter(status=AdmissionStatus.ACTIVE)
            .order_by("-admission_datetime")
            .first()
        )
        if admission is not None:
            admission.status = AdmissionStatus.DISCHARGED
            admission.discharge_datetime = now
            admission.discharge_notes = data["discharge_reason"]
            admission.save(update_fields=["status", "discharge_datetime", "discharge_notes", "updated_at"])

        bed = Bed.objects.select_for_update().filter(patient_id=patient.id).first()
        if bed is not None:
            Bed.objects.filter(id=bed.id).update(patient=None, updated_at=now)

        summary = {
            "patient_id": str(patient.id),
            "patient_number": patient.patient_number,
            "full_name": patient.full_name,
            "bed_number": bed.bed_number if bed is not None else None,
            "admission_datetime": admission.admission_datetime if admission else None,
            "discharge_datetime": now,
            "length_of_stay_days": (now - admission.admission_datetime).days if admission else None,
            "discharge_reason": data["discharge_reason"],
            "doctor_comments": data["doctor_comments"],
            "discharge_instructions": data.get("discharge_instructions", ""),
            "follow_up_required": bool(data.get("follow_up_required", False)),
            "follow_up_date": data.get("follow_up_date"),
            "medications_prescribed": data.get("medications_prescribed", ""),
        }

        targets = PatientService.audit_targets(patient)
        summary["documents_removed"] = DocumentService.purge_for_patient(patient_id=patient.id)
        summary["audit_entries_removed"] = AuditService.purge_targets(
            targets=targets,
            extra=PatientService.audit_payload_query(patient.id),
        )
        patient.delete()

        logger.info("Discharged and erased patient %s by %s", summary["patient_number"], actor_id)
        return summary

    # ----------------------------
    # Helpers
    # ----------------------------
    @staticmethod
    def audit_targets(patient: Patient) -> list[tuple[str, str]]:
        """
        Every ``(table, id)`` whose audit trail belongs to this patient.
        """
        targets = [(Patient._meta.db_table, str(patient.id))]
        for model in (Admission, MedicalRecord, EmergencyContact, CriticalFactor, PatientDocument):
            ids = model.objects.filter(patient_id=patient.id).values_list("id", flat=True)
            targets.extend((model._meta.db_table, str(pk)) for pk in ids)
        return targets

    @staticmethod
    def audit_payload_query(patient_id) -> Q:
        """
        Audit rows whose row image names the patient: dependents already deleted
        (documents removed on deassign or one by one) and alert acknowledgments.
        """
        pid = str(patient_id)
        return Q(new_values__patient_id=pid) | Q(old_values__patient_id=pid)

    @staticmethod
    def _create_patient(**fields) -> Patient:
        for _ in range(PATIENT_NUMBER_ATTEMPTS):
            number = generate_patient_number()
            try:
                with transaction.atomic():
                    return Patient.objects.create(patient_number=number, **fields)
            except IntegrityError:
                nic = fields.get("nic_passport")
                if nic and Patient.objects.filter(nic_passport=nic).exists():
                    raise ConflictError("A patient with this NIC/passport already exists.")
                logger.warning("Patient number %s taken concurrently, regenerating", number)
        raise ConflictError("Could not allocate a patient number, please retry.")

    @staticmethod
    def _apply_patient_fields(*, actor_id: int | None, patient: Patient, data: dict[str, Any]) -> None:
        old_state = model_snapshot(patient)

        if "nic_passport" in data:
            nic = _clean_nic(data["nic_passport"])
            if nic and Patient.objects.filter(nic_passport=nic).exclude(id=patient.id).exists():
                raise ConflictError("A patient with this NIC/passport already exists.")
            data = {**data, "nic_passport": nic}

        for key, value in data.items():
            if key not in PATIENT_FIELDS:
                continue
            if value is None and key not in NULLABLE_PATIENT_FIELDS:
                value = ""
            setattr(patient, key, value)

        if "date_of_birth" in data and data["date_of_birth"] and "age" not in data:
            patient.age = _age_from_dob(data["date_of_birth"])

        patient.is_incomplete = not _has_identity(patient)
        patient.save()
        AuditService.record_update(actor_id=actor_id, instance=patient, old_state=old_state)

    @staticmethod
    def _upsert_medical_record(*, actor_id: int | None, patient: Patient, data: dict[str, Any]) -> MedicalRecord:
        fields = {k: v for k, v in data.items() if k in MEDICAL_RECORD_FIELDS and v is not None}
        record = MedicalRecord.objects.select_for_update().filter(patient=patient).first()
        if record is None:
            record = MedicalRecord.objects.create(patient=patient, **fields)
            AuditService.record_create(actor_id=actor_id, instance=record)
            return record

        old_state = model_snapshot(record)
        for key, value in fields.items():
            setattr(record, key, value)
        record.save()
        AuditService.record_update(actor_id=actor_id, instance=record, old_state=old_state)
        return record

    @staticmethod
    def _upsert_primary_contact(
        *,
        actor_id: int | None,
        patient: Patient,
        data: dict[str, Any],
    ) -> EmergencyContact | None:
        fields = {k: v for k, v in data.items() if k in EMERGENCY_CONTACT_FIELDS and v is not None}
        contact = EmergencyContact.objects.select_for_update().filter(patient=patient, is_primary=True).first()

        if contact is None:
            if not fields.get("name"):
                return None
            contact = EmergencyContact.objects.create(patient=patient, is_primary=True, **fields)
            AuditService.record_create(actor_id=actor_id, instance=contact)
            return contact

        old_state = model_snapshot(contact)
        for key, value in fields.items():
            setattr(contact, key, value)
        contact.save()
        AuditService.record_update(actor_id=actor_id, instance=contact, old_state=old_state)
        return contact

    @staticmethod
    def _open_admission(*, actor_id: int | None, patient: Patient, data: dict[str, Any]) -> Admission:
        fields = {k: v for k, v in data.items() if k in ADMISSION_FIELDS and v not in (None, "")}
        admission = Admission.objects.create(
            patient=patient,
            status=AdmissionStatus.ACTIVE,
            admitted_by_id=actor_id,
            **fields,
        )
        AuditService.record_create(actor_id=actor_id, instance=admission)
        return admission
