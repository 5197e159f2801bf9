# backend/hdu_core/common/permissions.py

from __future__ import annotations

from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import SAFE_METHODS, BasePermission

ROLE_SUPER_ADMIN = "Super Admin"
ROLE_CONSULTANT = "Consultant"
ROLE_MEDICAL_OFFICER = "Medical Officer"
ROLE_NURSE = "Nurse"
ROLE_HOUSE_OFFICER = "House Officer"

ALL_ROLES = frozenset({ROLE_SUPER_ADMIN, ROLE_CONSULTANT, ROLE_MEDICAL_OFFICER, ROLE_NURSE, ROLE_HOUSE_OFFICER})

# Ward staff allowed on beds, patients, vitals and documents.
CLINICAL_ROLES = frozenset({ROLE_NURSE, ROLE_MEDICAL_OFFICER, ROLE_CONSULTANT, ROLE_HOUSE_OFFICER})


def user_role(user) -> str | None:
    """
    Resolve the caller's role from the HDU profile.
    Django superusers without a profile are treated as Super Admin.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    profile = getattr(user, "hdu_profile", None)
    if profile is not None and profile.role:
        return profile.role

    if getattr(user, "is_superuser", False):
        return ROLE_SUPER_ADMIN
    return None


class BaseRolePermission(BasePermission):
    """
    Allow-list RBAC per view action.

    - Unauthenticated callers get False so DRF answers 401.
    - Role mismatches raise a 403 carrying the caller's role and the
      roles the action requires.
    - Unknown SAFE actions fall back to list/retrieve.
    """
    message = "Access denied. Insufficient permissions."

    allowed_roles_per_action: dict[str, frozenset[str] | set[str]] = {}

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def _allowed_for(self, request, view) -> frozenset[str] | set[str]:
        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            read_action = "retrieve" if ("pk" in kwargs or "id" in kwargs) else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        return allowed or frozenset()

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        role = user_role(user)
        allowed = self._allowed_for(request, view)
        if role in allowed:
            return True

        raise PermissionDenied(
            {
                "detail": self.message,
                "user_role": role,
                "required_roles": sorted(allowed),
            }
        )


def _same_roles(roles, actions) -> dict[str, frozenset[str]]:
    return {action: frozenset(roles) for action in actions}


class BedPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(
        CLINICAL_ROLES,
        ["list", "retrieve", "by_status", "generate_patient_id", "occupancy", "assign", "deassign"],
    )


class PatientPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(
        CLINICAL_ROLES,
        [
            "list",
            "retrieve",
            "partial_update",
            "analytics",
            "length_of_stay",
            "change_history",
            "update_incomplete",
            "discharge",
        ],
    )


class CriticalFactorPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(
        CLINICAL_ROLES,
        ["list", "retrieve", "create", "update", "audit", "critical_patients"],
    )


class AlertPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(CLINICAL_ROLES, ["create", "list", "acknowledge", "analytics"])


class DocumentPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(
        CLINICAL_ROLES,
        ["list", "retrieve", "create", "update", "destroy", "download"],
    )


class VitalSignsConfigPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": frozenset({ROLE_SUPER_ADMIN, ROLE_CONSULTANT, ROLE_MEDICAL_OFFICER}),
        "list_all": frozenset({ROLE_SUPER_ADMIN, ROLE_CONSULTANT, ROLE_MEDICAL_OFFICER}),
        "retrieve": frozenset({ROLE_SUPER_ADMIN, ROLE_CONSULTANT, ROLE_MEDICAL_OFFICER}),
        "active": ALL_ROLES,
        "create": frozenset({ROLE_SUPER_ADMIN}),
        "update": frozenset({ROLE_SUPER_ADMIN}),
        "partial_update": frozenset({ROLE_SUPER_ADMIN}),
        "destroy": frozenset({ROLE_SUPER_ADMIN}),
        "toggle_status": frozenset({ROLE_SUPER_ADMIN}),
    }


class UserAdministrationPermission(BaseRolePermission):
    """Pending-user approval flow is Super Admin only."""
    allowed_roles_per_action = _same_roles(
        {ROLE_SUPER_ADMIN},
        ["list", "retrieve", "pending", "approve", "reject"],
    )


class ConsultantDirectoryPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(CLINICAL_ROLES, ["list"])


class AuditPermission(BaseRolePermission):
    allowed_roles_per_action = _same_roles(CLINICAL_ROLES | {ROLE_SUPER_ADMIN}, ["list", "retrieve"])
