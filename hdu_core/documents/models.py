# backend/hdu_core/documents/models.py
import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import get_valid_filename

from hdu_core.common.models import UUIDModel
from hdu_core.patients.models import Patient


class DocumentType(models.TextChoices):
    MEDICAL_REPORT = "MedicalReport", "Medical report"
    ID_PROOF = "IdProof", "ID proof"
    CONSENT_FORM = "ConsentForm", "Consent form"
    OTHER = "Other", "Other"


DOCUMENT_FOLDERS = {
    DocumentType.MEDICAL_REPORT: "medical-reports",
    DocumentType.ID_PROOF: "id-proof",
    DocumentType.CONSENT_FORM: "consent-forms",
    DocumentType.OTHER: "other",
}


def document_upload_to(instance: "PatientDocument", filename: str) -> str:
    base, ext = os.path.splitext(filename)
    base = get_valid_filename(base) or "document"
    folder = DOCUMENT_FOLDERS.get(instance.document_type, "other")
    unique = f"{int(timezone.now().timestamp() * 1000)}-{uuid.uuid4().hex}"
    root = getattr(settings, "HDU_DOCUMENTS_DIR", "patient-documents")
    return f"{root}/{folder}/{base}-{unique}{ext.lower()}"


class PatientDocument(UUIDModel):
    """
    Uploaded file attached to a patient. The file lives in MEDIA_ROOT and is
    not transactional with this row.
    """
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="documents")
    document_type = models.CharField(max_length=16, choices=DocumentType.choices, default=DocumentType.OTHER)
    file = models.FileField(upload_to=document_upload_to, max_length=500)
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=128)
    file_size = models.PositiveBigIntegerField(default=0)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="documents_uploaded",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "patient_documents"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["patient", "document_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.document_type}: {self.file_name}"
