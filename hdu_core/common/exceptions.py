# backend/hdu_core/common/exceptions.py
"""
Domain exceptions shared by services and the authentication class.

Kept free of ``rest_framework.views`` imports: DRF loads the authentication
classes while ``rest_framework.views`` is still initialising.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, PermissionDenied


class ConflictError(APIException):
    """
    Business-rule conflict (bed already occupied, duplicate username, ...).
    Reported as 400 to stay compatible with existing clients.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class AccountNotApproved(PermissionDenied):
    """
    Raised for pending/rejected accounts. Carries the account status so the
    frontend can show guidance instead of a generic auth failure.
    """
    default_detail = "Your account is not approved yet."
    default_code = "account_not_approved"
