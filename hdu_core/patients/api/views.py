# backend/hdu_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hdu_core.audit.api.serializers import AuditLogSerializer
from hdu_core.common.api.pagination import paginate
from hdu_core.common.api.lookups import UUID_LOOKUP
from hdu_core.common.permissions import PatientPermission
from hdu_core.patients.api.serializers import (
    DischargeSerializer,
    PatientAdmissionSerializer,
    PatientDetailSerializer,
    PatientSummarySerializer,
)
from hdu_core.patients.models import Patient
from hdu_core.patients.selectors import (
    change_history as patient_change_history,
    latest_sample,
    length_of_stay,
    patient_analytics,
    patient_detail,
    patients_qs,
)
from hdu_core.patients.services import PatientService
from hdu_core.vital_signs.selectors import active_configs
from hdu_core.vital_signs.thresholds import classify


def _detail_response(patient_id, *, status_code=status.HTTP_200_OK) -> Response:
    patient = patient_detail(patient_id=patient_id)
    sample = latest_sample(patient_id=patient.id)
    context = {"latest_sample": sample}
    if sample is not None:
        context["flags"] = classify(sample.as_sample(), active_configs())
    return Response(PatientDetailSerializer(patient, context=context).data, status=status_code)


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]
    serializer_class = PatientDetailSerializer
    queryset = Patient.objects.none()
    lookup_value_regex = UUID_LOOKUP

    @extend_schema(
        tags=["Patients"],
        parameters=[
            OpenApiParameter("search", str, description="Name, patient number or NIC/passport"),
            OpenApiParameter("is_incomplete", bool),
        ],
        responses={200: PatientSummarySerializer(many=True)},
    )
    def list(self, request):
        incomplete = request.query_params.get("is_incomplete")
        qs = patients_qs(
            q=(request.query_params.get("search") or "").strip() or None,
            is_incomplete=None if incomplete is None else incomplete.lower() in ("1", "true", "yes"),
        )
        return paginate(request, qs, PatientSummarySerializer)

    @extend_schema(tags=["Patients"])
    def retrieve(self, request, pk=None):
        return _detail_response(pk)

    @extend_schema(tags=["Patients"], request=PatientAdmissionSerializer)
    def partial_update(self, request, pk=None):
        ser = PatientAdmissionSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        PatientService.update_patient(actor_id=request.user.id, patient_id=pk, data=ser.validated_data)
        return _detail_response(pk)

    @extend_schema(tags=["Patients"], request=PatientAdmissionSerializer)
    @action(detail=True, methods=["put"], url_path="update-incomplete")
    def update_incomplete(self, request, pk=None):
        ser = PatientAdmissionSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        PatientService.complete_incomplete_patient(actor_id=request.user.id, patient_id=pk, data=ser.validated_data)
        return _detail_response(pk)

    @extend_schema(tags=["Patients"], request=DischargeSerializer)
    @action(detail=True, methods=["post"], url_path="discharge")
    def discharge(self, request, pk=None):
        ser = DischargeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        summary = PatientService.discharge(actor_id=request.user.id, patient_id=pk, data=ser.validated_data)
        return Response(
            {"detail": "Patient discharged and all records permanently removed", "summary": summary},
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Patients"], responses={200: AuditLogSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="change-history")
    def change_history(self, request, pk=None):
        qs = patient_change_history(patient_id=pk)
        return paginate(request, qs, AuditLogSerializer)

    @extend_schema(tags=["Patients"], responses={200: None})
    @action(detail=False, methods=["get"], url_path="analytics")
    def analytics(self, request):
        return Response(patient_analytics(), status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], responses={200: None})
    @action(detail=False, methods=["get"], url_path="analytics/length-of-stay")
    def length_of_stay(self, request):
        return Response(length_of_stay(), status=status.HTTP_200_OK)
