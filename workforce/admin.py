"""Admin configuration for workforce requests."""
from django.contrib import admin

from .models import (
    Comment,
    Employee,
    LeaveBalance,
    LeaveBalanceHistory,
    LeaveRequest,
    Setting,
    Shift,
    SwapRequest,
)


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    fields = ("user", "content", "is_system", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("user", "role")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ("user", "date", "shift_type", "original_user", "swapped_with_user")
    list_filter = ("shift_type", "date")
    search_fields = ("user__username",)
    ordering = ("date",)


@admin.register(LeaveRequest)
class LeaveRequestAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "leave_type",
        "start_date",
        "end_date",
        "status",
        "team_lead_decided_at",
        "manager_decided_at",
    )
    list_filter = ("status", "leave_type", "start_date")
    search_fields = ("user__username", "notes")
    # Status changes go through the workflow, not the admin.
    readonly_fields = ("status", "version", "created_at", "updated_at", "team_lead_decided_at", "manager_decided_at")
    ordering = ("-created_at",)
    inlines = [CommentInline]


@admin.register(SwapRequest)
class SwapRequestAdmin(admin.ModelAdmin):
    list_display = (
        "requester",
        "target_user",
        "requester_original_date",
        "target_original_date",
        "status",
        "executed_at",
    )
    list_filter = ("status",)
    search_fields = ("requester__username", "target_user__username")
    readonly_fields = (
        "status",
        "version",
        "executed_at",
        "requester_original_date",
        "requester_original_shift_type",
        "target_original_date",
        "target_original_shift_type",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at",)
    inlines = [CommentInline]


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ("key", "value", "updated_at")
    search_fields = ("key",)


@admin.register(LeaveBalance)
class LeaveBalanceAdmin(admin.ModelAdmin):
    list_display = ("user", "leave_type", "balance", "updated_at")
    list_filter = ("leave_type",)
    search_fields = ("user__username",)
    readonly_fields = ("balance",)


@admin.register(LeaveBalanceHistory)
class LeaveBalanceHistoryAdmin(admin.ModelAdmin):
    list_display = ("user", "leave_type", "change_amount", "reason", "balance_before", "balance_after", "created_at")
    list_filter = ("reason", "leave_type")
    search_fields = ("user__username",)
