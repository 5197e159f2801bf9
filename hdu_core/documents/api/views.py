# backend/hdu_core/documents/api/views.py
from __future__ import annotations

from django.core.files.storage import default_storage
from django.http import FileResponse
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from hdu_core.common.api.lookups import UUID_LOOKUP
from hdu_core.common.permissions import DocumentPermission
from hdu_core.documents.api.serializers import DocumentUpdateSerializer, PatientDocumentSerializer
from hdu_core.documents.models import PatientDocument
from hdu_core.documents.selectors import documents_for_patient
from hdu_core.documents.services import UPLOAD_FIELDS, DocumentService
from hdu_core.patients.models import Patient


class PatientDocumentsView(APIView):
    """
    Upload (multipart: medicalReports, idProof, consentForm, other) and list
    a patient's documents.
    """
    permission_classes = [DocumentPermission]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(tags=["Documents"], responses={200: PatientDocumentSerializer(many=True)})
    def get(self, request, patient_id):
        if not Patient.objects.filter(id=patient_id).exists():
            raise NotFound("Patient not found")
        docs = documents_for_patient(patient_id=patient_id, document_type=request.query_params.get("document_type"))
        data = PatientDocumentSerializer(docs, many=True).data
        return Response({"count": len(data), "documents": data}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Documents"], request=None, responses={201: PatientDocumentSerializer(many=True)})
    def post(self, request, patient_id):
        files = {field: request.FILES.getlist(field) for field in UPLOAD_FIELDS if request.FILES.getlist(field)}
        docs = DocumentService.upload(actor_id=request.user.id, patient_id=patient_id, files=files)
        return Response(
            {
                "detail": f"{len(docs)} document(s) uploaded successfully",
                "documents": PatientDocumentSerializer(docs, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )


class DocumentViewSet(viewsets.ViewSet):
    permission_classes = [DocumentPermission]
    serializer_class = PatientDocumentSerializer
    queryset = PatientDocument.objects.none()
    lookup_value_regex = UUID_LOOKUP

    @extend_schema(tags=["Documents"])
    def retrieve(self, request, pk=None):
        doc = PatientDocument.objects.get(id=pk)
        return Response(PatientDocumentSerializer(doc).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Documents"], request=DocumentUpdateSerializer)
    def update(self, request, pk=None):
        ser = DocumentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        doc = DocumentService.rename(actor_id=request.user.id, document_id=pk, data=ser.validated_data)
        return Response(PatientDocumentSerializer(doc).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Documents"])
    def destroy(self, request, pk=None):
        DocumentService.delete(actor_id=request.user.id, document_id=pk)
        return Response({"detail": "Document deleted successfully"}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Documents"], responses={200: None})
    @action(detail=True, methods=["get"], url_path="download")
    def download(self, request, pk=None):
        doc = PatientDocument.objects.get(id=pk)
        if not doc.file or not default_storage.exists(doc.file.name):
            raise NotFound("File not found on server")
        return FileResponse(
            doc.file.open("rb"),
            as_attachment=True,
            filename=doc.file_name,
            content_type=doc.file_type or "application/octet-stream",
        )
