# backend/hdu_core/critical_factors/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from hdu_core.audit.api.serializers import AuditLogSerializer
from hdu_core.common.api.lookups import UUID_LOOKUP
from hdu_core.common.permissions import CriticalFactorPermission
from hdu_core.critical_factors.api.serializers import (
    CriticalFactorSerializer,
    VitalsAmendSerializer,
    VitalsInputSerializer,
)
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.critical_factors.selectors import critical_patients, sample_history, samples_for_patient
from hdu_core.critical_factors.services import CriticalFactorService
from hdu_core.patients.models import Patient
from hdu_core.vital_signs.selectors import active_configs


class PatientCriticalFactorsView(APIView):
    """
    Record vitals for a patient (one sample or a list) and list their samples.
    """
    permission_classes = [CriticalFactorPermission]

    @extend_schema(tags=["Critical factors"], responses={200: CriticalFactorSerializer(many=True)})
    def get(self, request, patient_id):
        if not Patient.objects.filter(id=patient_id).exists():
            raise NotFound("Patient not found")
        context = {"configs": list(active_configs())}
        data = CriticalFactorSerializer(samples_for_patient(patient_id=patient_id), many=True, context=context).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Critical factors"], request=VitalsInputSerializer, responses={201: CriticalFactorSerializer(many=True)})
    def post(self, request, patient_id):
        many = isinstance(request.data, list)
        ser = VitalsInputSerializer(data=request.data, many=many)
        ser.is_valid(raise_exception=True)

        samples = ser.validated_data if many else [ser.validated_data]
        factors = CriticalFactorService.record(actor_id=request.user.id, patient_id=patient_id, samples=samples)

        context = {"configs": list(active_configs())}
        return Response(
            {
                "detail": f"{len(factors)} vitals record(s) saved",
                "critical_factors": CriticalFactorSerializer(factors, many=True, context=context).data,
            },
            status=status.HTTP_201_CREATED,
        )


class CriticalFactorViewSet(viewsets.ViewSet):
    permission_classes = [CriticalFactorPermission]
    serializer_class = CriticalFactorSerializer
    queryset = CriticalFactor.objects.none()
    lookup_value_regex = UUID_LOOKUP

    @extend_schema(tags=["Critical factors"])
    def retrieve(self, request, pk=None):
        factor = CriticalFactor.objects.get(id=pk)
        context = {"configs": list(active_configs())}
        return Response(CriticalFactorSerializer(factor, context=context).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Critical factors"], request=VitalsAmendSerializer)
    def update(self, request, pk=None):
        ser = VitalsAmendSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        data = dict(ser.validated_data)
        reason = data.pop("amendment_reason")
        factor = CriticalFactorService.amend(actor_id=request.user.id, factor_id=pk, reason=reason, data=data)

        context = {"configs": list(active_configs())}
        return Response(CriticalFactorSerializer(factor, context=context).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Critical factors"], responses={200: AuditLogSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="audit")
    def audit(self, request, pk=None):
        qs = sample_history(factor_id=pk)
        return Response(AuditLogSerializer(qs, many=True).data, status=status.HTTP_200_OK)


class CriticalPatientsQuerySerializer(serializers.Serializer):
    hours = serializers.IntegerField(min_value=1, max_value=24 * 30, required=False)


class CriticalPatientsView(APIView):
    permission_classes = [CriticalFactorPermission]
    action = "critical_patients"

    @extend_schema(tags=["Critical factors"], parameters=[OpenApiParameter("hours", int)], responses={200: None})
    def get(self, request):
        query = CriticalPatientsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        patients = critical_patients(hours=query.validated_data.get("hours"))
        return Response({"count": len(patients), "patients": patients}, status=status.HTTP_200_OK)
