# backend/hdu_core/alerts/services.py
"""
Alerts are derived on the client from live vitals and bed state; the only
thing persisted is the acknowledgment, as an ACKNOWLEDGE audit row.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.audit.services import AuditService

logger = logging.getLogger(__name__)

ALERTS_TABLE = "alerts"

SYSTEM_ALERT_DESCRIPTIONS = {
    "high_occupancy": "High bed occupancy alert",
    "low_availability": "Low bed availability alert",
}


def describe_acknowledgment(*, alert_type: str, patient_id=None, bed_number=None) -> str:
    message = f"Alert acknowledged: {alert_type}"
    if patient_id and bed_number:
        return f"{message} for patient {patient_id} in bed {bed_number}"
    return f"{message} - {SYSTEM_ALERT_DESCRIPTIONS.get(alert_type, 'System alert')}"


class AlertService:
    @staticmethod
    @transaction.atomic
    def acknowledge(
        *,
        actor_id: int | None,
        alert_id: str,
        alert_type: str,
        patient_id=None,
        bed_number=None,
        acknowledged_by: str | None = None,
    ) -> AuditLog:
        errors = {}
        if not (alert_id or "").strip():
            errors["alert_id"] = ["This field is required."]
        if not (alert_type or "").strip():
            errors["alert_type"] = ["This field is required."]
        if errors:
            raise ValidationError(errors)

        log = AuditService.record(
            actor_id=actor_id,
            action=AuditAction.ACKNOWLEDGE,
            table_name=ALERTS_TABLE,
            record_id=alert_id,
            new_state={
                "alert_id": alert_id,
                "alert_type": alert_type,
                "patient_id": str(patient_id) if patient_id else None,
                "bed_number": bed_number or None,
                "acknowledged_by": acknowledged_by or "Unknown",
                "acknowledged_at": timezone.now(),
            },
            description=describe_acknowledgment(alert_type=alert_type, patient_id=patient_id, bed_number=bed_number),
        )
        logger.info("Alert %s (%s) acknowledged by %s", alert_id, alert_type, actor_id)
        return log
