# backend/hdu_core/documents/services.py
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from django.conf import settings
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from rest_framework.exceptions import ValidationError

from hdu_core.audit.services import AuditService
from hdu_core.common.serialization import model_snapshot
from hdu_core.documents.models import DocumentType, PatientDocument
from hdu_core.patients.models import Patient

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/bmp",
        "image/tiff",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/ogg",
        "audio/aac",
        "audio/m4a",
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/x-msvideo",
        "video/webm",
        "video/ogg",
    }
)

INVALID_TYPE_MESSAGE = (
    "Invalid file type. Supported formats: Images (JPEG, PNG, GIF, WebP, BMP, TIFF), "
    "Documents (PDF, DOC, DOCX, XLS, XLSX, PPT, PPTX, TXT, CSV), "
    "Audio (MP3, WAV, OGG, AAC, M4A), Video (MP4, MPEG, MOV, AVI, WebM, OGV)"
)

# multipart field -> document type
UPLOAD_FIELDS = {
    "medicalReports": DocumentType.MEDICAL_REPORT,
    "idProof": DocumentType.ID_PROOF,
    "consentForm": DocumentType.CONSENT_FORM,
    "other": DocumentType.OTHER,
}


def max_file_size() -> int:
    return int(getattr(settings, "HDU_UPLOAD_MAX_FILE_SIZE", 100 * 1024 * 1024))


def max_files() -> int:
    return int(getattr(settings, "HDU_UPLOAD_MAX_FILES", 10))


def validate_uploads(files: Mapping[str, list[UploadedFile]]) -> None:
    total = sum(len(items) for items in files.values())
    if total == 0:
        raise ValidationError({"detail": "No files uploaded."})
    if total > max_files():
        raise ValidationError({"detail": f"Too many files. At most {max_files()} files per upload."})

    limit_mb = max_file_size() // (1024 * 1024)
    for items in files.values():
        for upload in items:
            if upload.size > max_file_size():
                raise ValidationError({"detail": f"File too large: {upload.name}. Maximum size is {limit_mb}MB."})
            if upload.content_type not in ALLOWED_CONTENT_TYPES:
                raise ValidationError({"detail": INVALID_TYPE_MESSAGE, "file": upload.name})


def remove_stored_files(names: Iterable[str]) -> int:
    """
    Best-effort removal of stored files; failures are logged, never raised.
    """
    removed = 0
    for name in names:
        if not name:
            continue
        try:
            default_storage.delete(name)
            removed += 1
        except OSError:
            logger.warning("Could not delete document file %s", name, exc_info=True)
    return removed


class DocumentService:
    @staticmethod
    @transaction.atomic
    def upload(
        *,
        actor_id: int | None,
        patient_id,
        files: Mapping[str, list[UploadedFile]],
    ) -> list[PatientDocument]:
        patient = Patient.objects.get(id=patient_id)
        validate_uploads(files)

        created: list[PatientDocument] = []
        written: list[str] = []
        try:
            for field, items in files.items():
                document_type = UPLOAD_FIELDS.get(field, DocumentType.OTHER)
                for upload in items:
                    doc = PatientDocument(
                        patient=patient,
                        document_type=document_type,
                        file_name=upload.name,
                        file_type=upload.content_type,
                        file_size=upload.size,
                        uploaded_by_id=actor_id,
                    )
                    doc.file.save(upload.name, upload, save=False)
                    written.append(doc.file.name)
                    doc.save()
                    AuditService.record_create(
                        actor_id=actor_id,
                        instance=doc,
                        description=f"Uploaded {document_type} {upload.name}",
                    )
                    created.append(doc)
        except Exception:
            # rows roll back with the transaction; files written so far do not
            remove_stored_files(written)
            raise

        logger.info("Uploaded %s documents for patient %s", len(created), patient.patient_number)
        return created

    @staticmethod
    @transaction.atomic
    def rename(*, actor_id: int | None, document_id, data: dict) -> PatientDocument:
        doc = PatientDocument.objects.select_for_update().get(id=document_id)
        old_state = model_snapshot(doc)

        if data.get("file_name"):
            doc.file_name = data["file_name"]
        if data.get("document_type"):
            doc.document_type = data["document_type"]
        doc.save(update_fields=["file_name", "document_type", "updated_at"])

        AuditService.record_update(actor_id=actor_id, instance=doc, old_state=old_state)
        return doc

    @staticmethod
    @transaction.atomic
    def delete(*, actor_id: int | None, document_id) -> None:
        doc = PatientDocument.objects.select_for_update().get(id=document_id)
        old_state = model_snapshot(doc)
        stored_name = doc.file.name

        doc.delete()
        AuditService.record_delete(
            actor_id=actor_id,
            instance=doc,
            old_state=old_state,
            description=f"Deleted document {old_state['file_name']}",
        )
        transaction.on_commit(lambda: remove_stored_files([stored_name]))

    @staticmethod
    @transaction.atomic
    def purge_for_patient(*, patient_id) -> int:
        """
        Delete every document row of a patient; files go once the transaction commits.
        """
        docs = PatientDocument.objects.filter(patient_id=patient_id)
        names = list(docs.values_list("file", flat=True))
        deleted, _ = docs.delete()

        if names:
            transaction.on_commit(lambda: remove_stored_files(names))
        return deleted
