# backend/hdu_core/iam/api/views.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from hdu_core.common.api.lookups import INT_LOOKUP
from hdu_core.common.permissions import ConsultantDirectoryPermission, UserAdministrationPermission
from hdu_core.iam.api.serializers import (
    ConsultantSerializer,
    LoginRequestSerializer,
    LoginResponseSerializer,
    RegisterResponseSerializer,
    RegisterSerializer,
    StaffSerializer,
)
from hdu_core.iam.models import UserProfile
from hdu_core.iam.selectors import all_users, approved_consultants, pending_users
from hdu_core.iam.services import AccountService


class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=RegisterSerializer, responses={201: RegisterResponseSerializer}, tags=["IAM"])
    def post(self, request):
        ser = RegisterSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        profile = AccountService.register(**ser.validated_data)

        if profile.is_approved:
            detail = "Registration successful."
        else:
            detail = "Registration successful. Your account is pending approval by Super Admin."
        return Response(
            {"detail": detail, "status": profile.status, "requires_approval": not profile.is_approved},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(request=LoginRequestSerializer, responses={200: LoginResponseSerializer}, tags=["IAM"])
    def post(self, request):
        ser = LoginRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = AccountService.login(**ser.validated_data)

        profile = getattr(result.user, "hdu_profile", None)
        user_data = StaffSerializer(profile).data if profile is not None else {
            "id": result.user.id,
            "username": result.user.username,
            "email": result.user.email,
        }
        return Response({"token": result.token, "user": user_data}, status=status.HTTP_200_OK)


class MeView(APIView):
    @extend_schema(responses={200: StaffSerializer}, tags=["IAM"])
    def get(self, request):
        profile = getattr(request.user, "hdu_profile", None)
        if profile is None:
            return Response({"id": request.user.id, "username": request.user.username}, status=status.HTTP_200_OK)
        return Response(StaffSerializer(profile).data, status=status.HTTP_200_OK)


class ConsultantListView(APIView):
    permission_classes = [ConsultantDirectoryPermission]

    @extend_schema(responses={200: ConsultantSerializer(many=True)}, tags=["IAM"])
    def get(self, request):
        return Response(ConsultantSerializer(approved_consultants(), many=True).data, status=status.HTTP_200_OK)


class StaffAccountViewSet(viewsets.GenericViewSet):
    """
    Super Admin view over staff accounts and the approval queue.
    Lookup is by Django user id.
    """
    permission_classes = [UserAdministrationPermission]
    serializer_class = StaffSerializer
    queryset = UserProfile.objects.none()
    lookup_value_regex = INT_LOOKUP

    @extend_schema(tags=["IAM"])
    def list(self, request):
        return Response(StaffSerializer(all_users(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["IAM"])
    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request):
        return Response(StaffSerializer(pending_users(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, tags=["IAM"])
    @action(detail=True, methods=["post", "put"], url_path="approve")
    def approve(self, request, pk=None):
        profile = AccountService.approve(actor_id=request.user.id, user_id=int(pk))
        return Response(
            {"detail": "User approved successfully", "user": StaffSerializer(profile).data},
            status=status.HTTP_200_OK,
        )

    @extend_schema(request=None, tags=["IAM"])
    @action(detail=True, methods=["post", "put"], url_path="reject")
    def reject(self, request, pk=None):
        profile = AccountService.reject(actor_id=request.user.id, user_id=int(pk))
        return Response(
            {"detail": "User rejected successfully", "user": StaffSerializer(profile).data},
            status=status.HTTP_200_OK,
        )
