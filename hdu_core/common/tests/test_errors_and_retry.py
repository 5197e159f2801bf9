# backend/hdu_core/common/tests/test_errors_and_retry.py
import os
import subprocess
import sys
from pathlib import Path

import pytest
from django.db import OperationalError
from rest_framework.test import APIRequestFactory

from hdu_core.beds.models import Bed
from hdu_core.common.api.exceptions import api_exception_handler
from hdu_core.common.db import retry_on_db_conflict
from hdu_core.common.exceptions import ConflictError


def _handle(exc):
    request = APIRequestFactory().get("/api/anything/")
    return api_exception_handler(exc, {"request": request, "view": None})


def test_conflict_uses_error_envelope():
    r = _handle(ConflictError("Bed is already occupied"))
    assert r.status_code == 400
    assert r.data["error"]["code"] == "conflict"
    assert r.data["error"]["message"] == "Bed is already occupied"
    assert r.data["error"]["request_id"]


def test_missing_row_maps_to_404():
    r = _handle(Bed.DoesNotExist("Bed matching query does not exist."))
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_unexpected_error_maps_to_500_with_message():
    r = _handle(RuntimeError("disk on fire"))
    assert r.status_code == 500
    assert r.data["error"] == {
        "code": "server_error",
        "message": "disk on fire",
        "details": None,
        "request_id": r.data["error"]["request_id"],
    }


@pytest.mark.django_db
def test_anonymous_request_gets_401_envelope(anon_client):
    r = anon_client.get("/api/beds/")
    assert r.status_code == 401, r.data
    assert r.data["error"]["code"] == "not_authenticated"


def test_retry_reruns_on_deadlock():
    calls = []

    @retry_on_db_conflict(3, backoff=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("deadlock detected")
        return "done"

    assert flaky() == "done"
    assert len(calls) == 3


def test_retry_gives_up_after_max_attempts():
    calls = []

    @retry_on_db_conflict(2, backoff=0)
    def always_locked():
        calls.append(1)
        raise OperationalError("database is locked")

    with pytest.raises(OperationalError):
        always_locked()
    assert len(calls) == 2


def test_non_conflict_errors_are_not_retried():
    calls = []

    @retry_on_db_conflict(5, backoff=0)
    def broken():
        calls.append(1)
        raise OperationalError("no such table: beds")

    with pytest.raises(OperationalError):
        broken()
    assert len(calls) == 1


@pytest.mark.django_db
def test_no_retry_inside_open_transaction():
    calls = []

    @retry_on_db_conflict(5, backoff=0)
    def nested():
        calls.append(1)
        raise OperationalError("deadlock detected")

    with pytest.raises(OperationalError):
        nested()
    assert len(calls) == 1


def test_project_boots_from_a_fresh_interpreter():
    # a fresh process imports the auth classes while rest_framework.views loads
    root = Path(__file__).resolve().parents[3]
    result = subprocess.run(
        [sys.executable, "manage.py", "check"],
        cwd=root,
        capture_output=True,
        text=True,
        env={**os.environ, "DJANGO_ENV": "local"},
    )
    assert result.returncode == 0, result.stderr
