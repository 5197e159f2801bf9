# backend/hdu_core/vital_signs/services.py
from __future__ import annotations

import logging
from typing import Any

from django.db import transaction

from hdu_core.audit.services import AuditService
from hdu_core.common.exceptions import ConflictError
from hdu_core.common.serialization import model_snapshot
from hdu_core.vital_signs.models import VitalSignsConfig
from hdu_core.vital_signs.thresholds import check_range

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "label",
    "unit",
    "normal_range_min",
    "normal_range_max",
    "data_type",
    "is_active",
    "display_order",
    "description",
}


class VitalSignsConfigService:
    @staticmethod
    @transaction.atomic
    def create(*, actor_id: int | None, data: dict[str, Any]) -> VitalSignsConfig:
        name = data["name"]
        if VitalSignsConfig.objects.filter(name=name).exists():
            raise ConflictError("Vital sign with this name already exists")

        config = VitalSignsConfig(name=name, **{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        check_range(config)
        config.save()

        AuditService.record_create(actor_id=actor_id, instance=config, description=f"Created vital sign {name}")
        return config

    @staticmethod
    @transaction.atomic
    def update(*, actor_id: int | None, config_id: int, data: dict[str, Any]) -> VitalSignsConfig:
        config = VitalSignsConfig.objects.select_for_update().get(id=config_id)
        old_state = model_snapshot(config)

        # name is the key samples are stored under; it never changes.
        for key, value in data.items():
            if key in EDITABLE_FIELDS:
                setattr(config, key, value)
        check_range(config)
        config.save()

        AuditService.record_update(
            actor_id=actor_id,
            instance=config,
            old_state=old_state,
            description=f"Updated vital sign {config.name}",
        )
        return config

    @staticmethod
    @transaction.atomic
    def toggle_status(*, actor_id: int | None, config_id: int) -> VitalSignsConfig:
        config = VitalSignsConfig.objects.select_for_update().get(id=config_id)
        old_state = model_snapshot(config)

        config.is_active = not config.is_active
        config.save(update_fields=["is_active", "updated_at"])

        AuditService.record_update(
            actor_id=actor_id,
            instance=config,
            old_state=old_state,
            description=f"{'Activated' if config.is_active else 'Deactivated'} vital sign {config.name}",
        )
        return config

    @staticmethod
    @transaction.atomic
    def delete(*, actor_id: int | None, config_id: int) -> None:
        config = VitalSignsConfig.objects.select_for_update().get(id=config_id)
        old_state = model_snapshot(config)
        config.delete()

        AuditService.record_delete(
            actor_id=actor_id,
            instance=config,
            old_state=old_state,
            description=f"Deleted vital sign {old_state['name']}",
        )
        logger.info("Vital sign %s deleted by %s", old_state["name"], actor_id)
