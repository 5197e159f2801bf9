# backend/hdu_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from hdu_core.iam.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name_with_initials", "role", "status", "ward", "created_at")
    list_filter = ("role", "status", "ward")
    search_fields = ("user__username", "user__email", "name_with_initials", "registration_number")
    ordering = ("-created_at",)
    actions = ["approve_selected", "reject_selected"]

    @admin.action(description="Approve selected accounts")
    def approve_selected(self, request, queryset):
        queryset.update(status="approved")

    @admin.action(description="Reject selected accounts")
    def reject_selected(self, request, queryset):
        queryset.update(status="rejected")
