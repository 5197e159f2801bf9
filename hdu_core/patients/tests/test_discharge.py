# backend/hdu_core/patients/tests/test_discharge.py
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from hdu_core.alerts.services import AlertService
from hdu_core.audit.models import AuditLog
from hdu_core.beds.models import Bed
from hdu_core.beds.services import BedService
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.critical_factors.services import CriticalFactorService
from hdu_core.documents.models import PatientDocument
from hdu_core.documents.services import DocumentService
from hdu_core.patients.models import Admission, EmergencyContact, MedicalRecord, Patient

pytestmark = pytest.mark.django_db

DISCHARGE = {
    "discharge_reason": "Recovered",
    "doctor_comments": "Stable for ward transfer",
    "follow_up_required": True,
    "follow_up_date": "2030-01-15",
}


def _upload(actor, patient, name, content_type):
    upload = SimpleUploadedFile(name, b"%PDF-1.4 test", content_type=content_type)
    return DocumentService.upload(actor_id=actor.id, patient_id=patient.id, files={"other": [upload]})[0]


def _dependent_ids(patient):
    ids = set()
    for model in (Admission, MedicalRecord, EmergencyContact, CriticalFactor, PatientDocument):
        ids.update(str(pk) for pk in model.objects.filter(patient_id=patient.id).values_list("id", flat=True))
    return ids


def test_discharge_erases_patient_and_history(
    api_client,
    consultant,
    admitted,
    vital_configs,
    media_root,
    django_capture_on_commit_callbacks,
):
    patient = admitted.patient
    CriticalFactorService.record(actor_id=consultant.id, patient_id=patient.id, samples=[{"spo2": 88}])
    with django_capture_on_commit_callbacks(execute=True):
        docs = DocumentService.upload(
            actor_id=consultant.id,
            patient_id=patient.id,
            files={"idProof": [SimpleUploadedFile("nic.pdf", b"%PDF-1.4 test", content_type="application/pdf")]},
        )
    stored = media_root / docs[0].file.name
    assert stored.exists()

    with django_capture_on_commit_callbacks(execute=True):
        scan = _upload(consultant, patient, "scan.png", "image/png")
        DocumentService.delete(actor_id=consultant.id, document_id=scan.id)

    dependent_ids = _dependent_ids(patient) | {str(scan.id)}

    AlertService.acknowledge(
        actor_id=consultant.id,
        alert_id="crit-1",
        alert_type="critical_vitals",
        patient_id=patient.id,
        bed_number=1,
    )
    AlertService.acknowledge(actor_id=consultant.id, alert_id="occ-1", alert_type="high_occupancy")
    assert AuditLog.objects.filter(record_id=str(patient.id)).exists()

    with django_capture_on_commit_callbacks(execute=True):
        r = api_client.post(f"/api/patients/{patient.id}/discharge/", DISCHARGE, format="json")
    assert r.status_code == 200, r.data

    summary = r.data["summary"]
    assert summary["patient_number"] == patient.patient_number
    assert summary["bed_number"] == 1
    assert summary["documents_removed"] == 1
    assert summary["audit_entries_removed"] > 0

    assert not Patient.objects.filter(id=patient.id).exists()
    for model in (Admission, MedicalRecord, EmergencyContact, CriticalFactor, PatientDocument):
        assert not model.objects.filter(patient_id=patient.id).exists()
    assert Bed.objects.get(bed_number=1).patient_id is None
    assert not stored.exists()

    remaining = AuditLog.objects.all()
    assert not remaining.filter(record_id=str(patient.id)).exists()
    assert not remaining.filter(record_id__in=dependent_ids).exists()
    assert not remaining.filter(table_name="alerts", record_id="crit-1").exists()
    # unrelated system alerts survive
    assert remaining.filter(table_name="alerts", record_id="occ-1").exists()

    again = api_client.post(f"/api/patients/{patient.id}/discharge/", DISCHARGE, format="json")
    assert again.status_code == 404, again.data


def test_discharge_requires_reason_and_comments(api_client, admitted):
    r = api_client.post(f"/api/patients/{admitted.patient.id}/discharge/", {"discharge_reason": ""}, format="json")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"
    assert set(r.data["error"]["details"]) >= {"discharge_reason", "doctor_comments"}
    assert Patient.objects.filter(id=admitted.patient.id).exists()


def test_super_admin_cannot_discharge(admin_client, admitted):
    r = admin_client.post(f"/api/patients/{admitted.patient.id}/discharge/", DISCHARGE, format="json")
    assert r.status_code == 403, r.data
    assert r.data["error"]["details"]["user_role"] == "Super Admin"
    assert Patient.objects.filter(id=admitted.patient.id).exists()


def test_discharge_after_deassign_leaves_no_document_history(
    api_client, consultant, admitted, media_root, django_capture_on_commit_callbacks
):
    patient = admitted.patient
    with django_capture_on_commit_callbacks(execute=True):
        doc = _upload(consultant, patient, "consent.pdf", "application/pdf")
        BedService.deassign(actor_id=consultant.id, bed_id=admitted.bed.id)
    assert AuditLog.objects.filter(table_name="patient_documents", record_id=str(doc.id)).exists()

    with django_capture_on_commit_callbacks(execute=True):
        r = api_client.post(f"/api/patients/{patient.id}/discharge/", DISCHARGE, format="json")
    assert r.status_code == 200, r.data
    assert r.data["summary"]["bed_number"] is None

    assert not AuditLog.objects.filter(record_id=str(doc.id)).exists()
    assert not AuditLog.objects.filter(new_values__patient_id=str(patient.id)).exists()
    assert not AuditLog.objects.filter(old_values__patient_id=str(patient.id)).exists()
