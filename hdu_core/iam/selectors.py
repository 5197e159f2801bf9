from __future__ import annotations

from django.db.models import QuerySet

from hdu_core.iam.models import AccountStatus, StaffRole, UserProfile


def profiles_qs() -> QuerySet[UserProfile]:
    return UserProfile.objects.select_related("user")


def pending_users() -> QuerySet[UserProfile]:
    return profiles_qs().filter(status=AccountStatus.PENDING).order_by("created_at")


def all_users() -> QuerySet[UserProfile]:
    return profiles_qs().order_by("-created_at")


def approved_consultants() -> QuerySet[UserProfile]:
    return profiles_qs().filter(role=StaffRole.CONSULTANT, status=AccountStatus.APPROVED).order_by("name_with_initials")
