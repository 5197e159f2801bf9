# backend/hdu_core/beds/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from hdu_core.beds.api.serializers import BedSerializer, BedStatusQuerySerializer
from hdu_core.beds.models import Bed
from hdu_core.beds.selectors import BedFilter, beds_qs, occupancy_summary
from hdu_core.beds.services import BedService
from hdu_core.common.api.lookups import INT_LOOKUP
from hdu_core.common.permissions import BedPermission
from hdu_core.patients.api.serializers import PatientAdmissionSerializer
from hdu_core.patients.services import generate_patient_number


def _filtered_beds(params):
    filterset = BedFilter(params, queryset=beds_qs())
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)
    return filterset.qs


class BedViewSet(viewsets.ViewSet):
    """
    HDU beds. ``assign`` admits the patient and occupies the bed;
    ``deassign`` closes the stay and frees it.
    """
    permission_classes = [BedPermission]
    serializer_class = BedSerializer
    queryset = Bed.objects.none()
    lookup_value_regex = INT_LOOKUP

    @extend_schema(
        tags=["Beds"],
        parameters=[OpenApiParameter("status", str, enum=["occupied", "available"])],
        responses={200: BedSerializer(many=True)},
    )
    def list(self, request):
        beds = _filtered_beds(request.query_params)
        return Response(BedSerializer(beds, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Beds"])
    def retrieve(self, request, pk=None):
        bed = beds_qs().get(id=pk)
        return Response(BedSerializer(bed).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Beds"],
        parameters=[OpenApiParameter("status", str, required=True, enum=["occupied", "available"])],
        responses={200: BedSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="status")
    def by_status(self, request):
        BedStatusQuerySerializer(data=request.query_params).is_valid(raise_exception=True)
        beds = _filtered_beds(request.query_params)
        return Response(BedSerializer(beds, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Beds"], responses={200: None})
    @action(detail=False, methods=["get"], url_path="occupancy")
    def occupancy(self, request):
        return Response(occupancy_summary(), status=status.HTTP_200_OK)

    @extend_schema(tags=["Beds"], responses={200: None})
    @action(detail=False, methods=["get"], url_path="generate-patient-id")
    def generate_patient_id(self, request):
        return Response({"patient_number": generate_patient_number()}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Beds"], request=PatientAdmissionSerializer, responses={201: BedSerializer})
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        ser = PatientAdmissionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = BedService.assign(actor_id=request.user.id, bed_id=int(pk), patient_data=ser.validated_data)
        bed = beds_qs().get(id=result.bed.id)
        return Response(
            {
                "detail": f"Patient {result.patient.patient_number} assigned to bed {bed.bed_number}",
                "patient_created": result.patient_created,
                "bed": BedSerializer(bed).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(tags=["Beds"], request=None, responses={200: BedSerializer})
    @action(detail=True, methods=["post"], url_path="deassign")
    def deassign(self, request, pk=None):
        release = BedService.deassign(actor_id=request.user.id, bed_id=int(pk))
        return Response(
            {
                "detail": f"Bed {release.bed.bed_number} is now available",
                "documents_removed": release.documents_removed,
                "bed": BedSerializer(release.bed).data,
            },
            status=status.HTTP_200_OK,
        )
