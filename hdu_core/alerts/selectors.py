# backend/hdu_core/alerts/selectors.py
from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import Any

from django.utils import timezone

from hdu_core.alerts.services import ALERTS_TABLE
from hdu_core.audit.models import AuditLog
from hdu_core.audit.selectors import acknowledgements_since
from hdu_core.common.permissions import user_role

RECENT_LIMIT = 10
UNKNOWN = "Unknown"


def _acknowledger(log: AuditLog) -> tuple[str, str]:
    if log.user is None:
        return UNKNOWN, UNKNOWN
    profile = getattr(log.user, "hdu_profile", None)
    name = profile.display_name if profile else log.user.get_username()
    return name, user_role(log.user) or UNKNOWN


def _top(counter: Counter) -> str:
    return counter.most_common(1)[0][0] if counter else "None"


def alert_analytics(*, days: int = 7) -> dict[str, Any]:
    """
    Acknowledgment statistics over the last ``days`` days, bucketed in the
    configured local time zone. Every day and every hour appears, zero-filled.
    """
    now = timezone.now()
    logs = list(acknowledgements_since(since=now - timedelta(days=days), table_name=ALERTS_TABLE))

    today = timezone.localdate(now)
    by_day = {(today - timedelta(days=offset)).isoformat(): 0 for offset in range(days - 1, -1, -1)}
    by_hour = {hour: 0 for hour in range(24)}
    by_type: Counter = Counter()
    by_user: Counter = Counter()

    recent = []
    for log in logs:
        values = log.new_values or {}
        name, role = _acknowledger(log)
        local = timezone.localtime(log.timestamp)

        by_type[values.get("alert_type") or UNKNOWN] += 1
        by_user[f"{name} ({role})"] += 1
        by_hour[local.hour] += 1
        day_key = local.date().isoformat()
        if day_key in by_day:
            by_day[day_key] += 1

        if len(recent) < RECENT_LIMIT:
            recent.append(
                {
                    "id": log.id,
                    "alert_id": values.get("alert_id"),
                    "alert_type": values.get("alert_type"),
                    "patient_id": values.get("patient_id"),
                    "bed_number": values.get("bed_number"),
                    "acknowledged_by": name,
                    "acknowledged_by_role": role,
                    "acknowledged_at": log.timestamp,
                    "description": log.description,
                }
            )

    total = len(logs)
    peak_hour = max(by_hour, key=lambda hour: (by_hour[hour], -hour))

    return {
        "total_alerts": total,
        "alerts_by_type": dict(by_type),
        "alerts_by_user": dict(by_user),
        "alerts_by_day": by_day,
        "alerts_by_hour": by_hour,
        "recent_alerts": recent,
        "summary": {
            "most_common_alert_type": _top(by_type),
            "most_active_user": _top(by_user),
            "average_alerts_per_day": round(total / days),
            "peak_hour": peak_hour,
        },
    }
