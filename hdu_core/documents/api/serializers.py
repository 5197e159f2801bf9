# backend/hdu_core/documents/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hdu_core.documents.models import DocumentType, PatientDocument


class PatientDocumentSerializer(serializers.ModelSerializer):
    file_url = serializers.SerializerMethodField()
    uploaded_at = serializers.DateTimeField(source="created_at", read_only=True)
    is_image = serializers.SerializerMethodField()
    is_video = serializers.SerializerMethodField()
    is_audio = serializers.SerializerMethodField()
    is_pdf = serializers.SerializerMethodField()
    is_document = serializers.SerializerMethodField()

    class Meta:
        model = PatientDocument
        fields = [
            "id",
            "patient_id",
            "document_type",
            "file_name",
            "file_url",
            "file_type",
            "file_size",
            "uploaded_by_id",
            "uploaded_at",
            "is_image",
            "is_video",
            "is_audio",
            "is_pdf",
            "is_document",
        ]
        read_only_fields = fields

    def get_file_url(self, obj: PatientDocument) -> str | None:
        return obj.file.url if obj.file else None

    def get_is_image(self, obj: PatientDocument) -> bool:
        return obj.file_type.startswith("image/")

    def get_is_video(self, obj: PatientDocument) -> bool:
        return obj.file_type.startswith("video/")

    def get_is_audio(self, obj: PatientDocument) -> bool:
        return obj.file_type.startswith("audio/")

    def get_is_pdf(self, obj: PatientDocument) -> bool:
        return obj.file_type == "application/pdf"

    def get_is_document(self, obj: PatientDocument) -> bool:
        return any(marker in obj.file_type for marker in ("document", "sheet", "presentation"))


class DocumentUpdateSerializer(serializers.Serializer):
    file_name = serializers.CharField(max_length=255, required=False)
    document_type = serializers.ChoiceField(choices=DocumentType.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs
