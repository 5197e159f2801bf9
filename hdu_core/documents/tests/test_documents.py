# backend/hdu_core/documents/tests/test_documents.py
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.documents.models import PatientDocument

pytestmark = pytest.mark.django_db


def _docs_url(patient_id):
    return f"/api/documents/patients/{patient_id}/documents/"


def _pdf(name="report.pdf"):
    return SimpleUploadedFile(name, b"%PDF-1.4 lab results", content_type="application/pdf")


def test_upload_and_list_documents(nurse_client, admitted, media_root):
    r = nurse_client.post(
        _docs_url(admitted.patient.id),
        {
            "medicalReports": [_pdf("cbc.pdf"), _pdf("ecg.pdf")],
            "idProof": SimpleUploadedFile("nic.png", b"\x89PNG fake", content_type="image/png"),
        },
        format="multipart",
    )
    assert r.status_code == 201, r.data
    assert len(r.data["documents"]) == 3

    stored = PatientDocument.objects.filter(patient=admitted.patient)
    assert stored.count() == 3
    for doc in stored:
        assert doc.file.name.startswith("patient-documents/")
        assert (media_root / doc.file.name).exists()
    assert AuditLog.objects.filter(action=AuditAction.CREATE, table_name="patient_documents").count() == 3

    r = nurse_client.get(_docs_url(admitted.patient.id), {"document_type": "IdProof"})
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1
    assert r.data["documents"][0]["file_name"] == "nic.png"
    assert r.data["documents"][0]["is_image"] is True


def test_unsupported_file_type_is_rejected(nurse_client, admitted, media_root):
    r = nurse_client.post(
        _docs_url(admitted.patient.id),
        {"other": SimpleUploadedFile("run.sh", b"#!/bin/sh", content_type="application/x-sh")},
        format="multipart",
    )
    assert r.status_code == 400, r.data
    assert r.data["error"]["message"].startswith("Invalid file type")
    assert not PatientDocument.objects.exists()


def test_upload_limits(nurse_client, admitted, media_root, settings):
    settings.HDU_UPLOAD_MAX_FILES = 2
    r = nurse_client.post(
        _docs_url(admitted.patient.id),
        {"medicalReports": [_pdf("a.pdf"), _pdf("b.pdf"), _pdf("c.pdf")]},
        format="multipart",
    )
    assert r.status_code == 400, r.data
    assert "Too many files" in r.data["error"]["message"]

    settings.HDU_UPLOAD_MAX_FILE_SIZE = 4
    r = nurse_client.post(_docs_url(admitted.patient.id), {"other": _pdf()}, format="multipart")
    assert r.status_code == 400, r.data
    assert "File too large" in r.data["error"]["message"]

    r = nurse_client.post(_docs_url(admitted.patient.id), {}, format="multipart")
    assert r.status_code == 400, r.data


def test_rename_download_and_delete(
    nurse_client, admitted, media_root, django_capture_on_commit_callbacks
):
    r = nurse_client.post(_docs_url(admitted.patient.id), {"consentForm": _pdf("consent.pdf")}, format="multipart")
    doc_id = r.data["documents"][0]["id"]
    doc = PatientDocument.objects.get(id=doc_id)
    path = media_root / doc.file.name

    r = nurse_client.put(f"/api/documents/{doc_id}/", {"file_name": "Signed consent.pdf"}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["file_name"] == "Signed consent.pdf"

    r = nurse_client.get(f"/api/documents/{doc_id}/download/")
    assert r.status_code == 200
    assert b"".join(r.streaming_content) == b"%PDF-1.4 lab results"
    assert "Signed consent.pdf" in r["Content-Disposition"]

    with django_capture_on_commit_callbacks(execute=True):
        r = nurse_client.delete(f"/api/documents/{doc_id}/")
    assert r.status_code == 200, r.data
    assert not PatientDocument.objects.filter(id=doc_id).exists()
    assert not path.exists()

    delete = AuditLog.objects.get(action=AuditAction.DELETE, table_name="patient_documents", record_id=doc_id)
    assert delete.old_values["file_name"] == "Signed consent.pdf"


def test_upload_for_unknown_patient_returns_404(nurse_client, db, media_root):
    r = nurse_client.post(_docs_url("3f1a2b4c-0000-4000-8000-000000000000"), {"other": _pdf()}, format="multipart")
    assert r.status_code == 404, r.data
