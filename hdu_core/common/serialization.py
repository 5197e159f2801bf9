from __future__ import annotations

import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from django.db.models.fields.files import FieldFile


def to_jsonable(value: Any) -> Any:
    """
    Deep-copies a value into plain JSON types (ISO dates, string decimals/UUIDs).
    """
    return json.loads(json.dumps(value, cls=DjangoJSONEncoder))


def model_snapshot(instance, *, exclude: tuple[str, ...] = ("created_at", "updated_at")) -> dict[str, Any]:
    """
    Row image of a model instance keyed by column attname (e.g. ``patient_id``).
    """
    data: dict[str, Any] = {}
    for field in instance._meta.concrete_fields:
        if field.name in exclude:
            continue
        value = field.value_from_object(instance)
        if isinstance(value, FieldFile):
            value = value.name or None
        data[field.attname] = value
    return to_jsonable(data)
