# backend/hdu_core/audit/api/views.py
from __future__ import annotations

import django_filters
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from hdu_core.audit.api.serializers import AuditLogSerializer
from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.audit.selectors import audit_logs_qs, history_for
from hdu_core.common.api.pagination import paginate
from hdu_core.common.permissions import AuditPermission


class AuditLogFilter(django_filters.FilterSet):
    table_name = django_filters.CharFilter()
    record_id = django_filters.CharFilter()
    action = django_filters.ChoiceFilter(choices=AuditAction.choices)
    user = django_filters.NumberFilter(field_name="user_id")
    since = django_filters.IsoDateTimeFilter(field_name="timestamp", lookup_expr="gte")

    class Meta:
        model = AuditLog
        fields = ["table_name", "record_id", "action", "user", "since"]


class AuditLogViewSet(viewsets.GenericViewSet):
    """
    Browse the audit trail (filterable by table, record, action, user).
    """
    permission_classes = [AuditPermission]
    serializer_class = AuditLogSerializer
    queryset = AuditLog.objects.none()
    filterset_class = AuditLogFilter

    def get_queryset(self):
        return audit_logs_qs()

    @extend_schema(tags=["Audit"], responses={200: AuditLogSerializer(many=True)})
    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())
        return paginate(request, qs, AuditLogSerializer)


class RecordHistoryView(APIView):
    permission_classes = [AuditPermission]

    @extend_schema(tags=["Audit"], responses={200: AuditLogSerializer(many=True)})
    def get(self, request, table_name: str, record_id: str):
        qs = history_for(table_name=table_name, record_id=record_id)
        if not qs.exists():
            raise NotFound("No audit history found for this record.")
        return Response(AuditLogSerializer(qs, many=True).data, status=status.HTTP_200_OK)
