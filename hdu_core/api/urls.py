# backend/hdu_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from hdu_core.alerts.api.views import AcknowledgeAlertView, AlertAnalyticsView
from hdu_core.audit.api.views import AuditLogViewSet, RecordHistoryView
from hdu_core.beds.api.views import BedViewSet
from hdu_core.critical_factors.api.views import (
    CriticalFactorViewSet,
    CriticalPatientsView,
    PatientCriticalFactorsView,
)
from hdu_core.documents.api.views import DocumentViewSet, PatientDocumentsView
from hdu_core.iam.api.views import ConsultantListView, LoginView, MeView, RegisterView, StaffAccountViewSet
from hdu_core.patients.api.views import PatientViewSet
from hdu_core.vital_signs.api.views import VitalSignsConfigViewSet

router = DefaultRouter()

router.register(r"auth/users", StaffAccountViewSet, basename="staff-accounts")
router.register(r"beds", BedViewSet, basename="beds")
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"critical-factors", CriticalFactorViewSet, basename="critical-factors")
router.register(r"vital-signs-config", VitalSignsConfigViewSet, basename="vital-signs-config")
router.register(r"documents", DocumentViewSet, basename="documents")
router.register(r"audit/logs", AuditLogViewSet, basename="audit-logs")

urlpatterns = [
    # Auth
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/me/", MeView.as_view(), name="me"),
    path("auth/consultants/", ConsultantListView.as_view(), name="consultants"),

    # Vitals + alerts (non-ViewSet endpoints)
    path(
        "critical-factors/patients/<uuid:patient_id>/critical-factors/",
        PatientCriticalFactorsView.as_view(),
        name="patient-critical-factors",
    ),
    path("critical-factors/critical-patients/", CriticalPatientsView.as_view(), name="critical-patients"),
    path("critical-factors/acknowledge-alert/", AcknowledgeAlertView.as_view(), name="acknowledge-alert"),
    path("critical-factors/analytics/alerts/", AlertAnalyticsView.as_view(), name="alert-analytics"),

    # Documents
    path(
        "documents/patients/<uuid:patient_id>/documents/",
        PatientDocumentsView.as_view(),
        name="patient-documents",
    ),

    # Audit trail for one record
    path("audit/<str:table_name>/<str:record_id>/", RecordHistoryView.as_view(), name="record-history"),

    path("", include(router.urls)),
]
