# backend/hdu_core/audit/services.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from django.db import transaction
from django.db.models import Q
from django.utils.dateparse import parse_datetime

from hdu_core.audit.models import AuditAction, AuditLog
from hdu_core.common.serialization import model_snapshot, to_jsonable

logger = logging.getLogger(__name__)

SNAPSHOT_ACTIONS = {AuditAction.CREATE, AuditAction.ACKNOWLEDGE}


def _comparable(value: Any) -> Any:
    """
    Datetimes (objects or ISO strings) compare at whole-second precision.
    """
    if isinstance(value, datetime):
        return value.replace(microsecond=0)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed.replace(microsecond=0)
    return value


def diff_changes(old_state: Mapping[str, Any] | None, new_state: Mapping[str, Any] | None) -> dict[str, dict[str, Any]]:
    """
    Field-level delta ``{key: {"old": ..., "new": ...}}`` for every key of
    ``new_state`` whose value differs from ``old_state[key]``.
    Neither input is modified.
    """
    old_state = old_state or {}
    changes: dict[str, dict[str, Any]] = {}
    for key, new_value in (new_state or {}).items():
        old_value = old_state.get(key)
        if _comparable(old_value) != _comparable(new_value):
            changes[key] = {"old": old_value, "new": new_value}
    return changes


class AuditService:
    """
    Central audit writer.

    Runs inside the caller's transaction: if the log row cannot be written the
    exception propagates and the mutation it describes rolls back with it.
    """

    @staticmethod
    @transaction.atomic
    def record(
        *,
        actor_id: int | None,
        action: str,
        table_name: str,
        record_id: Any,
        old_state: Mapping[str, Any] | None = None,
        new_state: Mapping[str, Any] | None = None,
        description: str = "",
    ) -> AuditLog:
        if action in SNAPSHOT_ACTIONS:
            old_values = None
            new_values = to_jsonable(dict(new_state or {}))
        elif action == AuditAction.UPDATE:
            old_values = to_jsonable(dict(old_state or {}))
            new_values = to_jsonable(diff_changes(old_state, new_state))
        elif action == AuditAction.DELETE:
            old_values = to_jsonable(dict(old_state or {}))
            new_values = None
        else:
            raise ValueError(f"Unsupported audit action: {action}")

        return AuditLog.objects.create(
            user_id=actor_id,
            action=action,
            table_name=table_name,
            record_id=str(record_id),
            old_values=old_values,
            new_values=new_values,
            description=description or "",
        )

    # ------------------------------------------------------------
    # Model-aware shortcuts
    # ------------------------------------------------------------
    @staticmethod
    def record_create(*, actor_id: int | None, instance, description: str = "") -> AuditLog:
        return AuditService.record(
            actor_id=actor_id,
            action=AuditAction.CREATE,
            table_name=instance._meta.db_table,
            record_id=instance.pk,
            new_state=model_snapshot(instance),
            description=description,
        )

    @staticmethod
    def record_update(
        *,
        actor_id: int | None,
        instance,
        old_state: Mapping[str, Any],
        description: str = "",
    ) -> AuditLog:
        return AuditService.record(
            actor_id=actor_id,
            action=AuditAction.UPDATE,
            table_name=instance._meta.db_table,
            record_id=instance.pk,
            old_state=old_state,
            new_state=model_snapshot(instance),
            description=description,
        )

    @staticmethod
    def record_delete(*, actor_id: int | None, instance, old_state: Mapping[str, Any], description: str = "") -> AuditLog:
        return AuditService.record(
            actor_id=actor_id,
            action=AuditAction.DELETE,
            table_name=instance._meta.db_table,
            record_id=old_state.get("id", instance.pk),
            old_state=old_state,
            description=description,
        )

    @staticmethod
    @transaction.atomic
    def purge_targets(*, targets: Iterable[tuple[str, Any]], extra: Q | None = None) -> int:
        """
        Permanently removes every audit row pointing at one of ``targets``.
        Used by patient discharge, which erases the patient's history.
        """
        query = Q()
        for table_name, record_id in targets:
            query |= Q(table_name=table_name, record_id=str(record_id))
        if extra is not None:
            query |= extra
        if not query:
            return 0

        deleted, _ = AuditLog.objects.filter(query).delete()
        logger.info("Purged %s audit rows", deleted)
        return deleted
