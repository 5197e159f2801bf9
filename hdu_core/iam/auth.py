# backend/hdu_core/iam/auth.py

from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken

from hdu_core.common.exceptions import AccountNotApproved
from hdu_core.common.permissions import user_role

LEGACY_TOKEN_HEADER = "HTTP_X_AUTH_TOKEN"


def issue_access_token(user) -> str:
    """
    Short-lived access token. The ``user`` claim mirrors what the ward
    frontend reads: ``{"user": {"id", "role"}}``.
    """
    token = AccessToken.for_user(user)
    token["user"] = {"id": user.id, "role": user_role(user)}
    return str(token)


class HeaderJWTAuthentication(JWTAuthentication):
    """
    Authenticate using:
      1) Authorization: Bearer <access>
      2) x-auth-token: <access> (legacy clients)

    Accounts that are not approved are rejected with 403 even when the token
    itself is valid.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            raw_token = self.get_raw_token(header)
        else:
            raw_token = request.META.get(LEGACY_TOKEN_HEADER) or None

        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)
        ensure_approved(user)
        return user, validated_token


def ensure_approved(user) -> None:
    profile = getattr(user, "hdu_profile", None)
    if profile is None:
        if getattr(user, "is_superuser", False):
            return
        raise AccountNotApproved({"detail": "No staff profile is linked to this account.", "status": None})

    if not profile.is_approved:
        raise AccountNotApproved(
            {
                "detail": f"Your account is {profile.status}. Contact the Super Admin for access.",
                "status": profile.status,
                "requires_approval": True,
            }
        )
