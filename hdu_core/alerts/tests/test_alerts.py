# backend/hdu_core/alerts/tests/test_alerts.py
from datetime import timedelta

import pytest
from django.utils import timezone

from hdu_core.alerts.selectors import alert_analytics
from hdu_core.alerts.services import AlertService
from hdu_core.audit.models import AuditAction, AuditLog

pytestmark = pytest.mark.django_db

ACK_URL = "/api/critical-factors/acknowledge-alert/"


def test_acknowledge_patient_alert_is_logged(api_client, admitted):
    r = api_client.post(
        ACK_URL,
        {
            "alert_id": "critical-1-spo2",
            "alert_type": "critical_vitals",
            "patient_id": str(admitted.patient.id),
            "bed_number": 1,
            "acknowledged_by": "A. Perera",
        },
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["alert_id"] == "critical-1-spo2"

    log = AuditLog.objects.get(action=AuditAction.ACKNOWLEDGE, table_name="alerts")
    assert log.record_id == "critical-1-spo2"
    assert log.new_values["patient_id"] == str(admitted.patient.id)
    assert log.new_values["acknowledged_by"] == "A. Perera"
    assert log.description == (
        f"Alert acknowledged: critical_vitals for patient {admitted.patient.id} in bed 1"
    )


def test_acknowledge_system_alert_uses_canned_description(nurse_client):
    r = nurse_client.post(ACK_URL, {"alert_id": "occ-80", "alert_type": "high_occupancy"}, format="json")
    assert r.status_code == 200, r.data

    log = AuditLog.objects.get(record_id="occ-80")
    assert log.description == "Alert acknowledged: high_occupancy - High bed occupancy alert"
    assert log.new_values["acknowledged_by"] == "Unknown"
    assert log.new_values["patient_id"] is None


def test_acknowledge_requires_id_and_type(nurse_client):
    r = nurse_client.post(ACK_URL, {"alert_type": "critical_vitals"}, format="json")
    assert r.status_code == 400, r.data
    assert "alert_id" in r.data["error"]["details"]
    assert not AuditLog.objects.exists()


def test_analytics_zero_fills_days_and_hours(consultant, nurse):
    AlertService.acknowledge(actor_id=consultant.id, alert_id="a1", alert_type="critical_vitals")
    AlertService.acknowledge(actor_id=consultant.id, alert_id="a2", alert_type="critical_vitals")
    AlertService.acknowledge(actor_id=nurse.id, alert_id="a3", alert_type="low_availability")

    stale = AlertService.acknowledge(actor_id=nurse.id, alert_id="old", alert_type="high_occupancy")
    AuditLog.objects.filter(id=stale.id).update(timestamp=timezone.now() - timedelta(days=10))

    data = alert_analytics(days=7)

    assert data["total_alerts"] == 3
    assert data["alerts_by_type"] == {"critical_vitals": 2, "low_availability": 1}
    assert data["alerts_by_user"] == {"A. Perera (Consultant)": 2, "B. Silva (Nurse)": 1}

    assert len(data["alerts_by_day"]) == 7
    assert data["alerts_by_day"][timezone.localdate().isoformat()] == 3
    assert sum(data["alerts_by_day"].values()) == 3

    assert list(data["alerts_by_hour"]) == list(range(24))
    assert data["alerts_by_hour"][timezone.localtime().hour] == 3

    assert data["summary"]["most_common_alert_type"] == "critical_vitals"
    assert data["summary"]["most_active_user"] == "A. Perera (Consultant)"
    assert data["summary"]["average_alerts_per_day"] == 0
    assert len(data["recent_alerts"]) == 3


def test_analytics_endpoint_validates_range(api_client):
    r = api_client.get("/api/critical-factors/analytics/alerts/", {"timeRange": 30})
    assert r.status_code == 200, r.data
    assert len(r.data["alerts_by_day"]) == 30
    assert r.data["summary"]["most_common_alert_type"] == "None"

    r = api_client.get("/api/critical-factors/analytics/alerts/", {"timeRange": 0})
    assert r.status_code == 400, r.data
