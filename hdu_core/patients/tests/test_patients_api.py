# backend/hdu_core/patients/tests/test_patients_api.py
from datetime import timedelta

import pytest
from django.utils import timezone

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.beds.services import BedService
from hdu_core.critical_factors.services import CriticalFactorService
from hdu_core.patients.models import Patient
from hdu_core.patients.services import generate_patient_number
from hdu_core.tests.helpers import admission_payload

pytestmark = pytest.mark.django_db


def test_patient_numbers_are_sequential_per_year(db):
    assert generate_patient_number(year=2031) == "PT-2031-0001"

    Patient.objects.create(patient_number="PT-2031-0009", full_name="A", gender="Male")
    Patient.objects.create(patient_number="PT-2031-0010", full_name="B", gender="Female")
    Patient.objects.create(patient_number="PT-2030-0500", full_name="C", gender="Male")

    assert generate_patient_number(year=2031) == "PT-2031-0011"


def test_retrieve_patient_includes_dependents_and_latest_vitals(api_client, consultant, admitted, vital_configs):
    CriticalFactorService.record(
        actor_id=consultant.id,
        patient_id=admitted.patient.id,
        samples=[{"spo2": 88, "heart_rate": 80}],
    )

    r = api_client.get(f"/api/patients/{admitted.patient.id}/")
    assert r.status_code == 200, r.data
    assert r.data["bed_number"] == 1
    assert r.data["active_admission"]["status"] == "Active"
    assert r.data["medical_record"]["blood_type"] == "O+"
    assert r.data["emergency_contact"]["relationship"] == "Spouse"
    assert r.data["latest_vitals"]["flags"] == {"spo2": "low"}


def test_retrieve_unknown_patient_returns_404(api_client, db):
    r = api_client.get("/api/patients/3f1a2b4c-0000-4000-8000-000000000000/")
    assert r.status_code == 404, r.data


def test_list_patients_supports_search(api_client, consultant, admitted, beds):
    BedService.assign(
        actor_id=consultant.id,
        bed_id=beds[1].id,
        patient_data=admission_payload(
            full_name="Sunethra Fernando", nic_passport="785556667V", gender="Female", date_of_birth=None
        ),
    )

    r = api_client.get("/api/patients/", {"search": "sunethra"})
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1
    assert r.data["results"][0]["full_name"] == "Sunethra Fernando"

    r = api_client.get("/api/patients/", {"search": admitted.patient.patient_number})
    assert [p["id"] for p in r.data["results"]] == [str(admitted.patient.id)]


def test_patch_records_field_level_diff(api_client, admitted):
    patient_id = admitted.patient.id

    r = api_client.patch(
        f"/api/patients/{patient_id}/",
        {"contact_number": "0700000001", "medical_record": {"known_allergies": "Penicillin"}},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["contact_number"] == "0700000001"
    assert r.data["medical_record"]["known_allergies"] == "Penicillin"

    update = AuditLog.objects.get(action=AuditAction.UPDATE, table_name="patients", record_id=str(patient_id))
    assert update.new_values == {"contact_number": {"old": "0771234567", "new": "0700000001"}}


def test_patch_duplicate_nic_is_conflict(api_client, consultant, admitted, beds):
    BedService.assign(
        actor_id=consultant.id,
        bed_id=beds[1].id,
        patient_data=admission_payload(full_name="Other", nic_passport="785556667V", date_of_birth=None),
    )

    r = api_client.patch(f"/api/patients/{admitted.patient.id}/", {"nic_passport": "785556667V"}, format="json")
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "conflict"


def test_update_incomplete_clears_flag_once_identity_is_known(api_client, beds):
    r = api_client.post(f"/api/beds/{beds[3].id}/assign/", {"is_urgent_admission": True}, format="json")
    patient_id = r.data["bed"]["patient"]["id"]

    r = api_client.put(f"/api/patients/{patient_id}/update-incomplete/", {"full_name": "Ruwan Dias"}, format="json")
    assert r.status_code == 400, r.data
    assert "gender" in r.data["error"]["details"]

    r = api_client.put(
        f"/api/patients/{patient_id}/update-incomplete/",
        {"full_name": "Ruwan Dias", "gender": "Male"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["is_incomplete"] is False


def test_change_history_lists_patient_and_dependent_entries(api_client, admitted):
    api_client.patch(f"/api/patients/{admitted.patient.id}/", {"address": "12 Galle Road"}, format="json")

    r = api_client.get(f"/api/patients/{admitted.patient.id}/change-history/")
    assert r.status_code == 200, r.data
    tables = {row["table_name"] for row in r.data["results"]}
    assert {"patients", "admissions", "medical_records", "emergency_contacts"} <= tables


def test_analytics_counts_patients_and_occupancy(api_client, consultant, admitted, vital_configs):
    CriticalFactorService.record(actor_id=consultant.id, patient_id=admitted.patient.id, samples=[{"spo2": 85}])

    r = api_client.get("/api/patients/analytics/")
    assert r.status_code == 200, r.data
    assert r.data["total_patients"] == 1
    assert r.data["active_admissions"] == 1
    assert r.data["critical_patients"] == 1
    assert r.data["gender_distribution"] == {"Male": 1}
    assert r.data["bed_occupancy"]["occupied"] == 1


def test_length_of_stay_reports_completed_and_current(api_client, consultant, beds):
    two_days_ago = timezone.now() - timedelta(days=2)
    payload = admission_payload(date_of_birth=None)
    payload["admission"] = {"department": "HDU", "admission_datetime": two_days_ago}
    BedService.assign(actor_id=consultant.id, bed_id=beds[0].id, patient_data=payload)
    BedService.deassign(actor_id=consultant.id, bed_id=beds[0].id)

    r = api_client.get("/api/patients/analytics/length-of-stay/")
    assert r.status_code == 200, r.data
    assert r.data["completed_stays"] == 1
    assert r.data["current_patients"] == 0
    assert r.data["average_days"] >= 1.9
    assert r.data["by_department"]["HDU"]["count"] == 1
