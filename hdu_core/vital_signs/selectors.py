from __future__ import annotations

from django.db.models import QuerySet

from hdu_core.vital_signs.models import VitalSignsConfig


def all_configs() -> QuerySet[VitalSignsConfig]:
    return VitalSignsConfig.objects.order_by("display_order", "name")


def active_configs() -> QuerySet[VitalSignsConfig]:
    return all_configs().filter(is_active=True)
