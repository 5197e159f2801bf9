from __future__ import annotations

from django.db.models import QuerySet

from hdu_core.documents.models import PatientDocument


def documents_for_patient(*, patient_id, document_type: str | None = None) -> QuerySet[PatientDocument]:
    qs = PatientDocument.objects.filter(patient_id=patient_id).select_related("uploaded_by")
    if document_type:
        qs = qs.filter(document_type=document_type)
    return qs.order_by("-created_at")
