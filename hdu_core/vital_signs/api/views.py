# backend/hdu_core/vital_signs/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hdu_core.common.api.lookups import INT_LOOKUP
from hdu_core.common.permissions import VitalSignsConfigPermission
from hdu_core.vital_signs.api.serializers import (
    VitalSignsConfigCreateSerializer,
    VitalSignsConfigSerializer,
    VitalSignsConfigUpdateSerializer,
)
from hdu_core.vital_signs.models import VitalSignsConfig
from hdu_core.vital_signs.selectors import active_configs, all_configs
from hdu_core.vital_signs.services import VitalSignsConfigService


class VitalSignsConfigViewSet(viewsets.ViewSet):
    permission_classes = [VitalSignsConfigPermission]
    serializer_class = VitalSignsConfigSerializer
    queryset = VitalSignsConfig.objects.none()
    lookup_value_regex = INT_LOOKUP

    @extend_schema(tags=["Vital signs"], responses={200: VitalSignsConfigSerializer(many=True)})
    def list(self, request):
        return Response(VitalSignsConfigSerializer(all_configs(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Vital signs"], responses={200: VitalSignsConfigSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="all")
    def list_all(self, request):
        return self.list(request)

    @extend_schema(tags=["Vital signs"], responses={200: VitalSignsConfigSerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="active")
    def active(self, request):
        return Response(VitalSignsConfigSerializer(active_configs(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Vital signs"])
    def retrieve(self, request, pk=None):
        config = VitalSignsConfig.objects.get(id=pk)
        return Response(VitalSignsConfigSerializer(config).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Vital signs"], request=VitalSignsConfigCreateSerializer)
    def create(self, request):
        ser = VitalSignsConfigCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        config = VitalSignsConfigService.create(actor_id=request.user.id, data=ser.validated_data)
        return Response(VitalSignsConfigSerializer(config).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Vital signs"], request=VitalSignsConfigUpdateSerializer)
    def update(self, request, pk=None):
        ser = VitalSignsConfigUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        config = VitalSignsConfigService.update(actor_id=request.user.id, config_id=int(pk), data=ser.validated_data)
        return Response(VitalSignsConfigSerializer(config).data, status=status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @extend_schema(tags=["Vital signs"])
    def destroy(self, request, pk=None):
        VitalSignsConfigService.delete(actor_id=request.user.id, config_id=int(pk))
        return Response({"detail": "Vital sign configuration deleted"}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Vital signs"], request=None)
    @action(detail=True, methods=["patch"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):
        config = VitalSignsConfigService.toggle_status(actor_id=request.user.id, config_id=int(pk))
        return Response(VitalSignsConfigSerializer(config).data, status=status.HTTP_200_OK)
