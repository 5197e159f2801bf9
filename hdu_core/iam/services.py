# backend/hdu_core/iam/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from hdu_core.common.exceptions import AccountNotApproved, ConflictError
from hdu_core.iam.auth import issue_access_token
from hdu_core.iam.models import AccountStatus, StaffRole, UserProfile

logger = logging.getLogger(__name__)

User = get_user_model()

PROFILE_FIELDS = (
    "registration_number",
    "ward",
    "mobile_number",
    "sex",
    "name_with_initials",
    "speciality",
    "grade",
)

PENDING_GUIDANCE = (
    "Your account registration is pending approval by the Super Admin. "
    "You will be able to access the system once your account has been approved."
)
REJECTED_GUIDANCE = (
    "Your account registration has been rejected by the Super Admin. "
    "Please contact the system administrator to request a review."
)


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class AccountService:
    """
    Staff registration, login and the Super Admin approval flow.
    """

    @staticmethod
    @transaction.atomic
    def register(
        *,
        username: str,
        email: str,
        password: str,
        role: str,
        **profile_fields,
    ) -> UserProfile:
        if User.objects.filter(username=username).exists():
            raise ConflictError("Username already exists")
        if email and User.objects.filter(email__iexact=email).exists():
            raise ConflictError("Email already exists")

        user = User.objects.create_user(username=username, email=email, password=password)

        # Only the bootstrap Super Admin skips the approval queue.
        status = AccountStatus.APPROVED if role == StaffRole.SUPER_ADMIN else AccountStatus.PENDING
        profile = UserProfile.objects.create(
            user=user,
            role=role,
            status=status,
            **{k: v for k, v in profile_fields.items() if k in PROFILE_FIELDS and v is not None},
        )
        logger.info("Registered %s as %s (%s)", username, role, status)
        return profile

    @staticmethod
    def login(*, username: str, password: str) -> LoginResult:
        user = authenticate(username=username, password=password)
        if user is None:
            raise ValidationError({"detail": "Invalid credentials"})

        profile = getattr(user, "hdu_profile", None)
        if profile is not None and not profile.is_approved:
            guidance = PENDING_GUIDANCE if profile.status == AccountStatus.PENDING else REJECTED_GUIDANCE
            raise AccountNotApproved(
                {
                    "detail": guidance,
                    "status": profile.status,
                    "requires_approval": True,
                    "user_info": {
                        "username": user.username,
                        "email": user.email,
                        "role": profile.role,
                        "registered_at": profile.created_at.isoformat(),
                    },
                }
            )

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        return LoginResult(token=issue_access_token(user), user=user)

    @staticmethod
    @transaction.atomic
    def set_status(*, actor_id: int | None, user_id: int, status: str) -> UserProfile:
        profile = UserProfile.objects.select_for_update().select_related("user").get(user_id=user_id)
        profile.status = status
        profile.save(update_fields=["status", "updated_at"])
        logger.info("User %s marked %s by %s", profile.user.username, status, actor_id)
        return profile

    @staticmethod
    def approve(*, actor_id: int | None, user_id: int) -> UserProfile:
        return AccountService.set_status(actor_id=actor_id, user_id=user_id, status=AccountStatus.APPROVED)

    @staticmethod
    def reject(*, actor_id: int | None, user_id: int) -> UserProfile:
        return AccountService.set_status(actor_id=actor_id, user_id=user_id, status=AccountStatus.REJECTED)
