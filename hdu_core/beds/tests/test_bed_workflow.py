# backend/hdu_core/beds/tests/test_bed_workflow.py
import logging

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import DatabaseError

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.beds.invariants import check_bed_invariants
from hdu_core.beds.models import Bed
from hdu_core.beds.services import BedService
from hdu_core.common.exceptions import ConflictError
from hdu_core.documents.models import PatientDocument
from hdu_core.documents.services import DocumentService
from hdu_core.patients.models import Admission, AdmissionStatus, Patient
from hdu_core.patients.services import PatientService
from hdu_core.tests.helpers import admission_payload

pytestmark = pytest.mark.django_db


def test_assign_bed_creates_patient_and_active_admission(api_client, beds):
    bed = beds[2]

    r = api_client.post(f"/api/beds/{bed.id}/assign/", admission_payload(), format="json")
    assert r.status_code == 201, r.data
    assert r.data["patient_created"] is True
    assert r.data["bed"]["bed_number"] == 3
    assert r.data["bed"]["status"] == "occupied"

    patient = Patient.objects.get(nic_passport="901234567V")
    assert patient.patient_number.startswith("PT-")
    assert patient.age is not None

    bed.refresh_from_db()
    assert bed.patient_id == patient.id

    admissions = Admission.objects.filter(patient=patient)
    assert admissions.count() == 1
    assert admissions.get().status == AdmissionStatus.ACTIVE

    creates = AuditLog.objects.filter(action=AuditAction.CREATE, table_name="patients", record_id=str(patient.id))
    assert creates.count() == 1

    assert check_bed_invariants() == {}


def test_assign_occupied_bed_is_rejected(api_client, admitted):
    r = api_client.post(
        f"/api/beds/{admitted.bed.id}/assign/",
        admission_payload(nic_passport="851112223V", full_name="Other Person"),
        format="json",
    )
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "conflict"
    assert "occupied" in r.data["error"]["message"].lower()
    assert not Patient.objects.filter(nic_passport="851112223V").exists()


def test_assign_unknown_bed_returns_404(api_client, beds):
    r = api_client.post("/api/beds/999/assign/", admission_payload(), format="json")
    assert r.status_code == 404, r.data
    assert r.data["error"]["code"] == "not_found"


def test_full_admission_requires_name_and_gender(api_client, beds):
    r = api_client.post(
        f"/api/beds/{beds[0].id}/assign/",
        {"nic_passport": "700000000V", "contact_number": "0770000000"},
        format="json",
    )
    assert r.status_code == 400, r.data
    assert set(r.data["error"]["details"]) >= {"full_name", "gender"}
    assert Bed.objects.get(id=beds[0].id).patient_id is None


def test_urgent_admission_without_details_is_flagged_incomplete(api_client, beds):
    r = api_client.post(f"/api/beds/{beds[1].id}/assign/", {"is_urgent_admission": True}, format="json")
    assert r.status_code == 201, r.data

    patient = Patient.objects.get(id=r.data["bed"]["patient"]["id"])
    assert patient.is_urgent_admission is True
    assert patient.is_incomplete is True


def test_readmission_reuses_patient_matched_by_nic(consultant, beds):
    first = BedService.assign(actor_id=consultant.id, bed_id=beds[0].id, patient_data=admission_payload(date_of_birth=None))
    BedService.deassign(actor_id=consultant.id, bed_id=beds[0].id)

    again = BedService.assign(actor_id=consultant.id, bed_id=beds[4].id, patient_data=admission_payload(date_of_birth=None))

    assert again.patient_created is False
    assert again.patient.id == first.patient.id
    assert Admission.objects.filter(patient=first.patient).count() == 2
    assert Admission.objects.filter(patient=first.patient, status=AdmissionStatus.ACTIVE).count() == 1


def test_lost_bed_race_keeps_patient_and_closes_its_admission(consultant, beds, monkeypatch):
    bed = beds[0]
    admit = PatientService.admit

    def admit_while_bed_is_taken(**kwargs):
        rival = admit(
            actor_id=consultant.id,
            data=admission_payload(nic_passport="851112223V", full_name="Rival Patient", date_of_birth=None),
        )
        Bed.objects.filter(id=bed.id).update(patient=rival.patient)
        return admit(**kwargs)

    monkeypatch.setattr(PatientService, "admit", staticmethod(admit_while_bed_is_taken))

    with pytest.raises(ConflictError, match="same time"):
        BedService.assign(actor_id=consultant.id, bed_id=bed.id, patient_data=admission_payload(date_of_birth=None))

    patient = Patient.objects.get(nic_passport="901234567V")
    assert not Admission.objects.filter(patient=patient, status=AdmissionStatus.ACTIVE).exists()
    assert Bed.objects.filter(patient=patient).count() == 0
    assert Bed.objects.get(id=bed.id).patient.nic_passport == "851112223V"
    assert check_bed_invariants() == {}


def test_patient_already_in_a_bed_is_not_placed_twice(consultant, admitted, beds):
    # stale state: bed 1 still holds the patient after the admission was closed
    Admission.objects.filter(id=admitted.admission.id).update(status=AdmissionStatus.DISCHARGED)

    with pytest.raises(ConflictError, match="Patient already occupies a bed"):
        BedService.assign(actor_id=consultant.id, bed_id=beds[1].id, patient_data=admission_payload(date_of_birth=None))

    assert Bed.objects.get(id=beds[1].id).patient_id is None
    assert Bed.objects.get(id=beds[0].id).patient_id == admitted.patient.id
    assert not Admission.objects.filter(patient=admitted.patient, status=AdmissionStatus.ACTIVE).exists()


def test_deassign_closes_admission_and_frees_bed(
    api_client, consultant, admitted, media_root, django_capture_on_commit_callbacks
):
    bed_id = admitted.bed.id
    with django_capture_on_commit_callbacks(execute=True):
        doc = DocumentService.upload(
            actor_id=consultant.id,
            patient_id=admitted.patient.id,
            files={"consentForm": [SimpleUploadedFile("consent.pdf", b"%PDF-1.4", content_type="application/pdf")]},
        )[0]
    stored = media_root / doc.file.name
    assert stored.exists()

    with django_capture_on_commit_callbacks(execute=True):
        r = api_client.post(f"/api/beds/{bed_id}/deassign/", format="json")
    assert r.status_code == 200, r.data
    assert r.data["bed"]["status"] == "available"

    admission = Admission.objects.get(id=admitted.admission.id)
    assert admission.status == AdmissionStatus.DISCHARGED
    assert admission.discharge_datetime is not None

    update = AuditLog.objects.get(action=AuditAction.UPDATE, table_name="admissions", record_id=str(admission.id))
    assert update.new_values["status"] == {"old": "Active", "new": "Discharged"}

    assert not PatientDocument.objects.filter(patient_id=admitted.patient.id).exists()
    assert not stored.exists()

    # deassign frees the bed but keeps the patient record
    assert Patient.objects.filter(id=admitted.patient.id).exists()


def test_deassign_frees_bed_when_document_cleanup_fails(consultant, admitted, monkeypatch, caplog):
    def broken_purge(**kwargs):
        raise DatabaseError("storage table locked")

    monkeypatch.setattr(DocumentService, "purge_for_patient", staticmethod(broken_purge))
    monkeypatch.setattr(logging.getLogger("hdu_core"), "propagate", True)

    release = BedService.deassign(actor_id=consultant.id, bed_id=admitted.bed.id)

    assert release.documents_removed == 0
    assert Bed.objects.get(id=admitted.bed.id).patient_id is None
    assert Admission.objects.get(id=admitted.admission.id).status == AdmissionStatus.DISCHARGED
    assert "Document cleanup failed" in caplog.text


def test_deassign_available_bed_is_rejected(api_client, beds):
    r = api_client.post(f"/api/beds/{beds[5].id}/deassign/", format="json")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "conflict"


def test_list_beds_filters_by_status(api_client, admitted):
    r = api_client.get("/api/beds/status/", {"status": "occupied"})
    assert r.status_code == 200, r.data
    assert [b["bed_number"] for b in r.data] == [1]
    assert r.data[0]["patient"]["patient_number"] == admitted.patient.patient_number
    assert r.data[0]["patient"]["emergency_contact"]["name"] == "Nimali Jayasinghe"

    r = api_client.get("/api/beds/", {"status": "available"})
    assert r.status_code == 200, r.data
    assert len(r.data) == 9

    r = api_client.get("/api/beds/status/", {"status": "broken"})
    assert r.status_code == 400, r.data


def test_retrieve_bed(api_client, admitted):
    r = api_client.get(f"/api/beds/{admitted.bed.id}/")
    assert r.status_code == 200, r.data
    assert r.data["patient"]["full_name"] == admitted.patient.full_name

    r = api_client.get("/api/beds/99999/")
    assert r.status_code == 404, r.data


def test_occupancy_and_generated_patient_number(api_client, admitted):
    r = api_client.get("/api/beds/occupancy/")
    assert r.status_code == 200, r.data
    assert r.data == {"total": 10, "occupied": 1, "available": 9, "rate": 10.0}

    r = api_client.get("/api/beds/generate-patient-id/")
    assert r.status_code == 200, r.data
    current = int(admitted.patient.patient_number.rsplit("-", 1)[1])
    assert r.data["patient_number"].endswith(f"{current + 1:04d}")


def test_seed_beds_is_idempotent(beds):
    call_command("seed_beds", count=10)
    assert Bed.objects.count() == 10
