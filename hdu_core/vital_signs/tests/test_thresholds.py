# backend/hdu_core/vital_signs/tests/test_thresholds.py
from decimal import Decimal
from types import SimpleNamespace

import pytest
from rest_framework.exceptions import ValidationError

from hdu_core.vital_signs.models import VitalDataType
from hdu_core.vital_signs.thresholds import (
    ThresholdConfigError,
    as_number,
    classify,
    is_critical,
    validate_dynamic_vitals,
)


def cfg(name, lo, hi, *, active=True, data_type=VitalDataType.DECIMAL):
    return SimpleNamespace(
        name=name,
        normal_range_min=None if lo is None else Decimal(str(lo)),
        normal_range_max=None if hi is None else Decimal(str(hi)),
        is_active=active,
        data_type=data_type,
    )


SPO2 = cfg("spo2", 95, 100, data_type=VitalDataType.INTEGER)
HR = cfg("heart_rate", 60, 100, data_type=VitalDataType.INTEGER)
TEMP = cfg("temperature", "36.1", "37.2")


def test_boundaries_are_normal():
    assert classify({"spo2": 95, "heart_rate": 100, "temperature": Decimal("37.2")}, [SPO2, HR, TEMP]) == {}


def test_out_of_range_values_are_flagged():
    flags = classify({"spo2": 88, "heart_rate": 101, "temperature": "36.0"}, [SPO2, HR, TEMP])
    assert flags == {"spo2": "low", "heart_rate": "high", "temperature": "low"}
    assert is_critical({"spo2": 94}, [SPO2])


def test_missing_and_non_numeric_values_are_skipped():
    assert classify({"spo2": None, "heart_rate": "n/a", "temperature": ""}, [SPO2, HR, TEMP]) == {}
    assert classify({}, [SPO2]) == {}


def test_inactive_configs_are_ignored():
    assert classify({"spo2": 50}, [cfg("spo2", 95, 100, active=False)]) == {}


def test_open_ended_ranges():
    assert classify({"pain_scale": 9}, [cfg("pain_scale", None, 3)]) == {"pain_scale": "high"}
    assert classify({"urine_output": 5}, [cfg("urine_output", "0.5", None)]) == {}


def test_inverted_range_is_a_config_error():
    with pytest.raises(ThresholdConfigError):
        classify({"spo2": 90}, [cfg("spo2", 100, 95)])


@pytest.mark.parametrize("value,expected", [(7, Decimal("7")), ("7.5", Decimal("7.5")), (True, None), ("nan", None)])
def test_as_number(value, expected):
    assert as_number(value) == expected


def test_validate_dynamic_vitals_checks_configured_types():
    configs = [SPO2, TEMP, cfg("airway", None, None, data_type=VitalDataType.TEXT)]
    cleaned = validate_dynamic_vitals(
        {"spo2": "97", "temperature": "36.8", "airway": 1, "cvp": 8, "note": None},
        configs,
    )
    assert cleaned == {"spo2": 97, "temperature": 36.8, "airway": "1", "cvp": 8}

    with pytest.raises(ValidationError) as exc:
        validate_dynamic_vitals({"spo2": "97.5", "cvp": [1, 2]}, configs)
    assert set(exc.value.detail["dynamic_vitals"]) == {"spo2", "cvp"}
