# backend/hdu_core/critical_factors/tests/test_vitals.py
from datetime import timedelta

import pytest
from django.utils import timezone

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.critical_factors.models import CriticalFactor
from hdu_core.critical_factors.services import CriticalFactorService
from hdu_core.vital_signs.models import VitalSignsConfig

pytestmark = pytest.mark.django_db


def _vitals_url(patient_id):
    return f"/api/critical-factors/patients/{patient_id}/critical-factors/"


def test_low_spo2_is_flagged_and_patient_listed_as_critical(nurse_client, admitted, vital_configs):
    r = nurse_client.post(_vitals_url(admitted.patient.id), {"spo2": 88, "heart_rate": 72}, format="json")
    assert r.status_code == 201, r.data
    assert r.data["critical_factors"][0]["flags"] == {"spo2": "low"}

    r = nurse_client.get("/api/critical-factors/critical-patients/")
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1

    entry = r.data["patients"][0]
    assert entry["patient_number"] == admitted.patient.patient_number
    assert entry["bed_number"] == 1
    assert entry["critical_samples"][0]["flags"] == {"spo2": "low"}


def test_normal_sample_is_not_critical(nurse_client, admitted, vital_configs):
    r = nurse_client.post(_vitals_url(admitted.patient.id), {"spo2": 95, "heart_rate": 100}, format="json")
    assert r.status_code == 201, r.data
    assert r.data["critical_factors"][0]["flags"] == {}

    r = nurse_client.get("/api/critical-factors/critical-patients/")
    assert r.data["count"] == 0


def test_critical_patients_follow_current_config(nurse_client, admitted, vital_configs):
    nurse_client.post(_vitals_url(admitted.patient.id), {"spo2": 93}, format="json")
    assert nurse_client.get("/api/critical-factors/critical-patients/").data["count"] == 1

    VitalSignsConfig.objects.filter(name="spo2").update(normal_range_min=90)
    assert nurse_client.get("/api/critical-factors/critical-patients/").data["count"] == 0


def test_samples_outside_lookback_window_are_ignored(consultant, nurse_client, admitted, vital_configs):
    CriticalFactorService.record(
        actor_id=consultant.id,
        patient_id=admitted.patient.id,
        samples=[{"spo2": 80, "recorded_at": timezone.now() - timedelta(hours=30)}],
    )

    assert nurse_client.get("/api/critical-factors/critical-patients/").data["count"] == 0
    r = nurse_client.get("/api/critical-factors/critical-patients/", {"hours": 48})
    assert r.data["count"] == 1


def test_batch_record_and_unknown_keys_become_dynamic(nurse_client, admitted, vital_configs):
    r = nurse_client.post(
        _vitals_url(admitted.patient.id),
        [{"heart_rate": 130}, {"spo2": 97, "capillary_refill": "2s"}],
        format="json",
    )
    assert r.status_code == 201, r.data
    assert len(r.data["critical_factors"]) == 2

    factor = CriticalFactor.objects.get(id=r.data["critical_factors"][1]["id"])
    assert factor.dynamic_vitals == {"capillary_refill": "2s"}

    r = nurse_client.get(_vitals_url(admitted.patient.id))
    assert r.status_code == 200, r.data
    assert len(r.data) == 2


def test_empty_sample_is_rejected(nurse_client, admitted, vital_configs):
    r = nurse_client.post(_vitals_url(admitted.patient.id), {}, format="json")
    assert r.status_code == 400, r.data


def test_recording_for_unknown_patient_returns_404(nurse_client, vital_configs):
    r = nurse_client.post(_vitals_url("3f1a2b4c-0000-4000-8000-000000000000"), {"spo2": 90}, format="json")
    assert r.status_code == 404, r.data


def test_amendment_requires_reason(nurse_client, consultant, admitted, vital_configs):
    factor = CriticalFactorService.record(
        actor_id=consultant.id, patient_id=admitted.patient.id, samples=[{"spo2": 90}]
    )[0]

    r = nurse_client.put(f"/api/critical-factors/{factor.id}/", {"spo2": 96}, format="json")
    assert r.status_code == 400, r.data
    assert "amendment_reason" in r.data["error"]["details"]

    factor.refresh_from_db()
    assert factor.spo2 == 90
    assert factor.is_amended is False


def test_amendment_merges_dynamic_vitals_and_is_audited(nurse_client, nurse, consultant, admitted, vital_configs):
    factor = CriticalFactorService.record(
        actor_id=consultant.id,
        patient_id=admitted.patient.id,
        samples=[{"spo2": 90, "dynamic_vitals": {"cvp": 8}}],
    )[0]

    r = nurse_client.put(
        f"/api/critical-factors/{factor.id}/",
        {"spo2": 96, "dynamic_vitals": {"etco2": 38}, "amendment_reason": "Sensor displaced"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["is_amended"] is True
    assert r.data["amended_by_id"] == nurse.id
    assert r.data["flags"] == {}

    factor.refresh_from_db()
    assert factor.dynamic_vitals == {"cvp": 8, "etco2": 38}

    update = AuditLog.objects.get(action=AuditAction.UPDATE, table_name="critical_factors", record_id=str(factor.id))
    assert update.description == "Vitals amended: Sensor displaced"
    assert update.new_values["spo2"] == {"old": 90, "new": 96}

    r = nurse_client.get(f"/api/critical-factors/{factor.id}/audit/")
    assert r.status_code == 200, r.data
    assert [row["action"] for row in r.data] == ["UPDATE", "CREATE"]
