# backend/hdu_core/conftest.py
from datetime import date

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from rest_framework.test import APIClient

from hdu_core.beds.models import Bed
from hdu_core.beds.services import BedService
from hdu_core.iam.models import AccountStatus, StaffRole, UserProfile
from hdu_core.tests.helpers import STAFF_PASSWORD, admission_payload, client_for


@pytest.fixture
def make_staff(db):
    """
    Factory: ``make_staff(role, username=None, status=approved)`` -> User
    with an HDU profile.
    """
    User = get_user_model()
    counter = {"n": 0}

    def _make(role, *, username=None, status=AccountStatus.APPROVED, name=None):
        counter["n"] += 1
        username = username or f"{role.lower().replace(' ', '_')}_{counter['n']}"
        user = User.objects.create_user(username=username, email=f"{username}@hdu.test", password=STAFF_PASSWORD)
        UserProfile.objects.create(
            user=user,
            role=role,
            status=status,
            name_with_initials=name or f"Dr. {username}",
        )
        return user

    return _make


@pytest.fixture
def super_admin(make_staff):
    return make_staff(StaffRole.SUPER_ADMIN, username="admin")


@pytest.fixture
def consultant(make_staff):
    return make_staff(StaffRole.CONSULTANT, username="consultant", name="A. Perera")


@pytest.fixture
def nurse(make_staff):
    return make_staff(StaffRole.NURSE, username="nurse", name="B. Silva")


@pytest.fixture
def api_client(consultant):
    return client_for(consultant)


@pytest.fixture
def nurse_client(nurse):
    return client_for(nurse)


@pytest.fixture
def admin_client(super_admin):
    return client_for(super_admin)


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def beds(db):
    call_command("seed_beds", count=10)
    return list(Bed.objects.order_by("bed_number"))


@pytest.fixture
def vital_configs(db):
    call_command("seed_vital_signs")


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path
    return tmp_path


@pytest.fixture
def admitted(beds, consultant):
    """
    A patient admitted through bed 1.
    """
    data = admission_payload(date_of_birth=date(1990, 5, 14))
    return BedService.assign(actor_id=consultant.id, bed_id=beds[0].id, patient_data=data)
