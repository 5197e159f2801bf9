# backend/hdu_core/alerts/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from hdu_core.alerts.api.serializers import AcknowledgeAlertSerializer, AlertAnalyticsQuerySerializer
from hdu_core.alerts.selectors import alert_analytics
from hdu_core.alerts.services import AlertService
from hdu_core.common.permissions import AlertPermission


class AcknowledgeAlertView(APIView):
    permission_classes = [AlertPermission]
    action = "acknowledge"

    @extend_schema(tags=["Alerts"], request=AcknowledgeAlertSerializer, responses={200: None})
    def post(self, request):
        ser = AcknowledgeAlertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        log = AlertService.acknowledge(actor_id=request.user.id, **ser.validated_data)
        return Response(
            {
                "detail": "Alert acknowledged successfully",
                "alert_id": log.record_id,
                "acknowledged_at": log.timestamp,
            },
            status=status.HTTP_200_OK,
        )


class AlertAnalyticsView(APIView):
    permission_classes = [AlertPermission]
    action = "analytics"

    @extend_schema(tags=["Alerts"], parameters=[OpenApiParameter("timeRange", int)], responses={200: None})
    def get(self, request):
        query = AlertAnalyticsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(alert_analytics(days=query.validated_data["timeRange"]), status=status.HTTP_200_OK)
