# backend/hdu_core/iam/api/serializers.py
from __future__ import annotations

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from hdu_core.iam.models import Sex, StaffRole, UserProfile


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=StaffRole.choices)

    registration_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    ward = serializers.CharField(max_length=64, required=False, allow_blank=True)
    mobile_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    sex = serializers.ChoiceField(choices=Sex.choices, required=False, allow_blank=True)
    name_with_initials = serializers.CharField(max_length=255, required=False, allow_blank=True)
    speciality = serializers.CharField(max_length=128, required=False, allow_blank=True)
    grade = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class StaffSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user.id", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            "id",
            "username",
            "email",
            "role",
            "status",
            "registration_number",
            "ward",
            "mobile_number",
            "sex",
            "name_with_initials",
            "speciality",
            "grade",
            "created_at",
        ]
        read_only_fields = fields


class ConsultantSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user.id", read_only=True)

    class Meta:
        model = UserProfile
        fields = ["id", "name_with_initials", "speciality", "ward"]
        read_only_fields = fields


class LoginResponseSerializer(serializers.Serializer):
    token = serializers.CharField()
    user = StaffSerializer()


class RegisterResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    status = serializers.CharField()
    requires_approval = serializers.BooleanField()
