# backend/hdu_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models

from hdu_core.common.models import TimeStampedModel
from hdu_core.common.permissions import (
    ROLE_CONSULTANT,
    ROLE_HOUSE_OFFICER,
    ROLE_MEDICAL_OFFICER,
    ROLE_NURSE,
    ROLE_SUPER_ADMIN,
)


class StaffRole(models.TextChoices):
    SUPER_ADMIN = ROLE_SUPER_ADMIN, "Super Admin"
    CONSULTANT = ROLE_CONSULTANT, "Consultant"
    MEDICAL_OFFICER = ROLE_MEDICAL_OFFICER, "Medical Officer"
    NURSE = ROLE_NURSE, "Nurse"
    HOUSE_OFFICER = ROLE_HOUSE_OFFICER, "House Officer"


class AccountStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Sex(models.TextChoices):
    MALE = "Male", "Male"
    FEMALE = "Female", "Female"
    OTHER = "Other", "Other"


class UserProfile(TimeStampedModel):
    """
    HDU staff profile anchored to Django's AUTH_USER_MODEL.
    Only ``approved`` accounts get past authentication.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="hdu_profile")
    role = models.CharField(max_length=32, choices=StaffRole.choices, db_index=True)
    status = models.CharField(
        max_length=16,
        choices=AccountStatus.choices,
        default=AccountStatus.PENDING,
        db_index=True,
    )

    registration_number = models.CharField(max_length=64, blank=True)
    ward = models.CharField(max_length=64, blank=True)
    mobile_number = models.CharField(max_length=32, blank=True)
    sex = models.CharField(max_length=16, choices=Sex.choices, blank=True)
    name_with_initials = models.CharField(max_length=255, blank=True)
    speciality = models.CharField(max_length=128, blank=True)
    grade = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = "iam_user_profile"
        indexes = [
            models.Index(fields=["role", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.user.username} ({self.role}, {self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == AccountStatus.APPROVED

    @property
    def display_name(self) -> str:
        return self.name_with_initials or self.user.get_username()
