# backend/hdu_core/tests/helpers.py
from rest_framework.test import APIClient

STAFF_PASSWORD = "Ward#Secure2024"


def client_for(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


def admission_payload(**overrides):
    payload = {
        "full_name": "Kamal Jayasinghe",
        "nic_passport": "901234567V",
        "gender": "Male",
        "date_of_birth": "1990-05-14",
        "contact_number": "0771234567",
        "admission": {"department": "HDU", "consultant_in_charge": "Dr. A. Perera"},
        "medical_record": {"blood_type": "O+", "initial_diagnosis": "Post-op monitoring"},
        "emergency_contact": {"name": "Nimali Jayasinghe", "relationship": "Spouse", "contact_number": "0719876543"},
    }
    payload.update(overrides)
    return payload
