# backend/hdu_core/vital_signs/thresholds.py
"""
Threshold evaluation for vitals samples.

A sample is a plain mapping of vital name -> value. Configs are
``VitalSignsConfig`` rows (or anything exposing the same attributes).
Evaluation is always done against the configs passed in, so callers must
load the *current* active set on every read.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError

from hdu_core.vital_signs.models import VitalDataType

LOW = "low"
HIGH = "high"


class ThresholdConfigError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Vital sign normal range is misconfigured."
    default_code = "threshold_config_error"


def as_number(value: Any) -> Decimal | None:
    """
    Numeric view of a sample value; None for missing, blank or non-numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None
    return number


def check_range(config) -> None:
    lo = config.normal_range_min
    hi = config.normal_range_max
    if lo is not None and hi is not None and Decimal(str(lo)) > Decimal(str(hi)):
        raise ThresholdConfigError(
            {
                "detail": f"Normal range for '{config.name}' has min greater than max.",
                "name": config.name,
                "normal_range_min": str(lo),
                "normal_range_max": str(hi),
            }
        )


def classify(sample: Mapping[str, Any], configs: Iterable) -> dict[str, str]:
    """
    ``{name: "low"|"high"}`` for each active config whose value on the sample
    lies strictly outside [min, max]. Boundary values are normal; missing or
    non-numeric values are skipped.
    """
    flags: dict[str, str] = {}
    for config in configs:
        if not getattr(config, "is_active", True):
            continue
        if config.name not in sample:
            continue

        value = as_number(sample[config.name])
        if value is None:
            continue

        check_range(config)
        lo = config.normal_range_min
        hi = config.normal_range_max

        if hi is not None and value > Decimal(str(hi)):
            flags[config.name] = HIGH
        elif lo is not None and value < Decimal(str(lo)):
            flags[config.name] = LOW
    return flags


def is_critical(sample: Mapping[str, Any], configs: Iterable) -> bool:
    return bool(classify(sample, configs))


def validate_dynamic_vitals(values: Mapping[str, Any] | None, configs: Iterable) -> dict[str, Any]:
    """
    Check a free-form vitals map against the configured data types.

    Configured keys must match their ``data_type``; unconfigured keys may be
    numbers or strings. Returns a cleaned copy.
    """
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise ValidationError({"dynamic_vitals": "Must be an object of vital name to value."})

    by_name = {c.name: c for c in configs}
    cleaned: dict[str, Any] = {}
    errors: dict[str, str] = {}

    for key, value in values.items():
        if value is None or value == "":
            continue

        config = by_name.get(key)
        data_type = config.data_type if config is not None else None

        if data_type == VitalDataType.TEXT:
            cleaned[key] = str(value)
        elif data_type == VitalDataType.INTEGER:
            number = as_number(value)
            if number is None or number != number.to_integral_value():
                errors[key] = "Expected a whole number."
            else:
                cleaned[key] = int(number)
        elif data_type == VitalDataType.DECIMAL:
            number = as_number(value)
            if number is None:
                errors[key] = "Expected a number."
            else:
                cleaned[key] = float(number)
        elif isinstance(value, bool) or not isinstance(value, (int, float, str)):
            errors[key] = "Expected a number or text."
        else:
            cleaned[key] = value

    if errors:
        raise ValidationError({"dynamic_vitals": errors})
    return cleaned
