# backend/hdu_core/audit/selectors.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from django.db.models import Q, QuerySet

from hdu_core.audit.models import AuditAction, AuditLog


def audit_logs_qs() -> QuerySet[AuditLog]:
    return AuditLog.objects.select_related("user", "user__hdu_profile").order_by("-timestamp", "-id")


def history_for(*, table_name: str, record_id: Any) -> QuerySet[AuditLog]:
    return audit_logs_qs().filter(table_name=table_name, record_id=str(record_id))


def history_for_targets(*, targets: Iterable[tuple[str, Any]]) -> QuerySet[AuditLog]:
    query = Q()
    for table_name, record_id in targets:
        query |= Q(table_name=table_name, record_id=str(record_id))
    if not query:
        return AuditLog.objects.none()
    return audit_logs_qs().filter(query)


def acknowledgements_since(*, since: datetime, table_name: str = "alerts") -> QuerySet[AuditLog]:
    return audit_logs_qs().filter(
        action=AuditAction.ACKNOWLEDGE,
        table_name=table_name,
        timestamp__gte=since,
    )
