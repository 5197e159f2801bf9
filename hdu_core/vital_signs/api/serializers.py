from __future__ import annotations

from rest_framework import serializers

from hdu_core.vital_signs.models import VitalDataType, VitalSignsConfig


class VitalSignsConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = VitalSignsConfig
        fields = [
            "id",
            "name",
            "label",
            "unit",
            "normal_range_min",
            "normal_range_max",
            "data_type",
            "is_active",
            "display_order",
            "description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VitalSignsConfigCreateSerializer(serializers.Serializer):
    name = serializers.RegexField(r"^[A-Za-z][A-Za-z0-9_]*$", max_length=64)
    label = serializers.CharField(max_length=128)
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    normal_range_min = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    normal_range_max = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    data_type = serializers.ChoiceField(choices=VitalDataType.choices, required=False, default=VitalDataType.DECIMAL)
    is_active = serializers.BooleanField(required=False, default=True)
    display_order = serializers.IntegerField(min_value=0, required=False, default=0)
    description = serializers.CharField(required=False, allow_blank=True, default="")


class VitalSignsConfigUpdateSerializer(serializers.Serializer):
    """
    Partial update contract. ``name`` is not accepted.
    """
    label = serializers.CharField(max_length=128, required=False)
    unit = serializers.CharField(max_length=32, required=False, allow_blank=True)
    normal_range_min = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    normal_range_max = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    data_type = serializers.ChoiceField(choices=VitalDataType.choices, required=False)
    is_active = serializers.BooleanField(required=False)
    display_order = serializers.IntegerField(min_value=0, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
