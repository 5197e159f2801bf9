# backend/hdu_core/critical_factors/services.py
from __future__ import annotations

import logging
from typing import Any, Iterable

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from hdu_core.audit.services import AuditService
from hdu_core.common.serialization import model_snapshot
from hdu_core.critical_factors.models import STANDARD_VITALS, CriticalFactor
from hdu_core.patients.models import Patient
from hdu_core.vital_signs.selectors import all_configs
from hdu_core.vital_signs.thresholds import classify, validate_dynamic_vitals

logger = logging.getLogger(__name__)


def split_sample(data: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    ``(standard column values, dynamic vitals)`` for one submitted sample.
    """
    standard = {name: data[name] for name in STANDARD_VITALS if name in data}
    dynamic = dict(data.get("dynamic_vitals") or {})
    return standard, dynamic


class CriticalFactorService:
    @staticmethod
    @transaction.atomic
    def record(*, actor_id: int | None, patient_id, samples: Iterable[dict[str, Any]]) -> list[CriticalFactor]:
        patient = Patient.objects.get(id=patient_id)
        configs = list(all_configs())

        created: list[CriticalFactor] = []
        for data in samples:
            standard, dynamic = split_sample(data)
            dynamic = validate_dynamic_vitals(dynamic, configs)
            if not any(v is not None for v in standard.values()) and not dynamic:
                raise ValidationError({"detail": "At least one vital sign value is required."})

            factor = CriticalFactor.objects.create(
                patient=patient,
                recorded_at=data.get("recorded_at") or timezone.now(),
                recorded_by_id=actor_id,
                dynamic_vitals=dynamic,
                **standard,
            )
            AuditService.record_create(
                actor_id=actor_id,
                instance=factor,
                description=f"Vitals recorded for {patient.patient_number}",
            )
            created.append(factor)

            flags = classify(factor.as_sample(), [c for c in configs if c.is_active])
            if flags:
                logger.info("Critical vitals for %s: %s", patient.patient_number, flags)

        return created

    @staticmethod
    @transaction.atomic
    def amend(*, actor_id: int | None, factor_id, reason: str, data: dict[str, Any]) -> CriticalFactor:
        """
        Correct a recorded sample. Dynamic vitals are merged into the existing
        map; the amender, time and reason are stamped on the row.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError({"amendment_reason": ["An amendment reason is required."]})

        factor = CriticalFactor.objects.select_for_update().get(id=factor_id)
        old_state = model_snapshot(factor)

        standard, dynamic = split_sample(data)
        for name, value in standard.items():
            setattr(factor, name, value)
        if dynamic:
            dynamic = validate_dynamic_vitals(dynamic, all_configs())
            factor.dynamic_vitals = {**(factor.dynamic_vitals or {}), **dynamic}
        if data.get("recorded_at"):
            factor.recorded_at = data["recorded_at"]

        factor.is_amended = True
        factor.amended_by_id = actor_id
        factor.amended_at = timezone.now()
        factor.amendment_reason = reason
        factor.save()

        AuditService.record_update(
            actor_id=actor_id,
            instance=factor,
            old_state=old_state,
            description=f"Vitals amended: {reason}",
        )
        logger.info("Vitals sample %s amended by %s", factor.id, actor_id)
        return factor
