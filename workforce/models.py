"""Database models for shift scheduling, leave and shift-swap requests."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Q
from django.utils import timezone

from .exceptions import InvalidAdjustment

User = get_user_model()


class Employee(models.Model):
    """Role profile attached to every user account."""

    class Role(models.TextChoices):
        AGENT = "agent", "Agent"
        TEAM_LEAD = "team_lead", "Team Lead"
        WORKFORCE_MANAGER = "workforce_manager", "Workforce Manager"

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="employee",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.AGENT)

    class Meta:
        ordering = ["user__username"]

    def __str__(self) -> str:
        return f"{self.user.get_username()} ({self.get_role_display()})"

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

    @property
    def is_workforce_manager(self) -> bool:
        return self.role == self.Role.WORKFORCE_MANAGER

    @classmethod
    def ensure_for_user(cls, user: User) -> "Employee":
        employee, _ = cls.objects.get_or_create(user=user)
        return employee


MANAGER_ROLES = (Employee.Role.TEAM_LEAD, Employee.Role.WORKFORCE_MANAGER)


def _is_manager(user: User) -> bool:
    return Employee.ensure_for_user(user).is_manager


class LeaveType(models.TextChoices):
    SICK = "sick", "Sick"
    ANNUAL = "annual", "Annual"
    CASUAL = "casual", "Casual"
    PUBLIC_HOLIDAY = "public_holiday", "Public Holiday"
    BEREAVEMENT = "bereavement", "Bereavement"


class ShiftType(models.TextChoices):
    AM = "AM", "AM Shift"
    PM = "PM", "PM Shift"
    BET = "BET", "BET Shift"
    OFF = "OFF", "Day Off"


class OwnedQuerySet(models.QuerySet):
    """Rows owned by a user: agents see their own, managers see everyone's."""

    def visible_to(self, user: User) -> "OwnedQuerySet":
        if _is_manager(user):
            return self.all()
        return self.filter(user=user)


class ShiftQuerySet(OwnedQuerySet):
    def upcoming(self, today: Optional[date] = None) -> "ShiftQuerySet":
        return self.filter(date__gte=today or timezone.localdate())


class Shift(models.Model):
    """A single scheduled work assignment for a user on a date."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="shifts",
    )
    date = models.DateField()
    shift_type = models.CharField(max_length=3, choices=ShiftType.choices)
    # Set by an executed swap.
    original_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    swapped_with_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ShiftQuerySet.as_manager()

    class Meta:
        ordering = ["date", "user__username"]

    def __str__(self) -> str:
        return f"{self.user.get_username()} {self.date} ({self.get_shift_type_display()})"


class LeaveRequestQuerySet(OwnedQuerySet):
    def pending(self) -> "LeaveRequestQuerySet":
        return self.filter(
            status__in=[
                LeaveRequest.Status.PENDING_TEAM_LEAD,
                LeaveRequest.Status.PENDING_WORKFORCE_MANAGER,
            ]
        )


class LeaveRequest(models.Model):
    """A leave request lifecycle record."""

    class Status(models.TextChoices):
        PENDING_TEAM_LEAD = "pending_team_lead", "Pending Team Lead"
        PENDING_WORKFORCE_MANAGER = "pending_workforce_manager", "Pending Workforce Manager"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    TERMINAL_STATUSES = (Status.APPROVED, Status.REJECTED)

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="leave_requests",
    )
    leave_type = models.CharField(max_length=20, choices=LeaveType.choices)
    start_date = models.DateField()
    end_date = models.DateField()
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=30,
        choices=Status.choices,
        default=Status.PENDING_TEAM_LEAD,
    )
    team_lead_decided_at = models.DateTimeField(null=True, blank=True)
    manager_decided_at = models.DateTimeField(null=True, blank=True)
    # Bumped on every committed transition.
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LeaveRequestQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.user.get_username()} {self.start_date}->{self.end_date} ({self.leave_type})"

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def clean(self) -> None:
        super().clean()
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("End date cannot be before start date.")

    def is_visible_to(self, user: User) -> bool:
        return self.user_id == user.pk or _is_manager(user)


class SwapRequestQuerySet(models.QuerySet):
    def involving(self, user: User) -> "SwapRequestQuerySet":
        return self.filter(Q(requester=user) | Q(target_user=user))

    def visible_to(self, user: User) -> "SwapRequestQuerySet":
        if _is_manager(user):
            return self.all()
        return self.involving(user)


class SwapRequest(models.Model):
    """A request to exchange two shifts between colleagues."""

    class Status(models.TextChoices):
        PENDING_ACCEPTANCE = "pending_acceptance", "Pending Acceptance"
        PENDING_APPROVAL = "pending_approval", "Pending Approval"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"
        DECLINED = "declined", "Declined"

    TERMINAL_STATUSES = (Status.APPROVED, Status.REJECTED, Status.DECLINED)

    requester = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="outgoing_swap_requests",
    )
    target_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="incoming_swap_requests",
    )
    requester_shift = models.ForeignKey(
        Shift,
        on_delete=models.PROTECT,
        related_name="+",
    )
    target_shift = models.ForeignKey(
        Shift,
        on_delete=models.PROTECT,
        related_name="+",
    )
    # Snapshots taken at creation; the shifts themselves change owner on execution.
    requester_original_date = models.DateField()
    requester_original_shift_type = models.CharField(max_length=3, choices=ShiftType.choices)
    target_original_date = models.DateField()
    target_original_shift_type = models.CharField(max_length=3, choices=ShiftType.choices)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING_ACCEPTANCE,
    )
    version = models.PositiveIntegerField(default=0)
    executed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SwapRequestQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return (
            f"{self.requester.get_username()} {self.requester_original_date} <-> "
            f"{self.target_user.get_username()} {self.target_original_date}"
        )

    def is_visible_to(self, user: User) -> bool:
        return user.pk in (self.requester_id, self.target_user_id) or _is_manager(user)


class Setting(models.Model):
    """Application-wide key/value configuration editable by workforce managers."""

    AUTO_APPROVE_KEY = "wfm_auto_approve"

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class Comment(models.Model):
    """Discussion entry on a leave or swap request."""

    leave_request = models.ForeignKey(
        LeaveRequest,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="comments",
    )
    swap_request = models.ForeignKey(
        SwapRequest,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="comments",
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="workforce_comments",
    )
    content = models.TextField()
    is_system = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.user.get_username()}: {self.content[:40]}"

    def clean(self) -> None:
        super().clean()
        if (self.leave_request_id is None) == (self.swap_request_id is None):
            raise ValidationError("A comment must belong to exactly one request.")


class LeaveBalance(models.Model):
    """Days available to a user for one leave type."""

    # Largest value the balance column holds.
    MAX_BALANCE = Decimal("999.99")

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="leave_balances",
    )
    leave_type = models.CharField(max_length=20, choices=LeaveType.choices)
    balance = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OwnedQuerySet.as_manager()

    class Meta:
        ordering = ["user__username", "leave_type"]
        unique_together = ("user", "leave_type")

    def __str__(self) -> str:
        return f"{self.user.get_username()} · {self.get_leave_type_display()}: {self.balance}"

    @classmethod
    def ensure_for_user(cls, user: User) -> None:
        for leave_type in LeaveType.values:
            cls.objects.get_or_create(user=user, leave_type=leave_type)

    @transaction.atomic
    def apply_change(
        self,
        amount: Decimal,
        reason: str,
        created_by: Optional[User] = None,
    ) -> "LeaveBalanceHistory":
        """Add ``amount`` (may be negative) and record the change."""
        locked = LeaveBalance.objects.select_for_update().get(pk=self.pk)
        before = locked.balance
        after = before + amount
        if after < 0:
            raise InvalidAdjustment("Leave balance cannot go negative.")
        if after > self.MAX_BALANCE:
            raise InvalidAdjustment(f"Leave balance cannot exceed {self.MAX_BALANCE} days.")
        LeaveBalance.objects.filter(pk=self.pk).update(balance=after, updated_at=timezone.now())
        self.refresh_from_db(fields=["balance", "updated_at"])
        return LeaveBalanceHistory.objects.create(
            user_id=self.user_id,
            leave_type=self.leave_type,
            change_amount=amount,
            reason=reason,
            balance_before=before,
            balance_after=after,
            created_by=created_by,
        )


class LeaveBalanceHistory(models.Model):
    """Audit trail of balance changes."""

    class Reason(models.TextChoices):
        MONTHLY_ACCRUAL = "monthly_accrual", "Monthly accrual"
        MANUAL_ADJUSTMENT = "manual_adjustment", "Manual adjustment"

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="leave_balance_history",
    )
    leave_type = models.CharField(max_length=20, choices=LeaveType.choices)
    change_amount = models.DecimalField(max_digits=5, decimal_places=2)
    reason = models.CharField(max_length=30, choices=Reason.choices)
    balance_before = models.DecimalField(max_digits=5, decimal_places=2)
    balance_after = models.DecimalField(max_digits=5, decimal_places=2)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = OwnedQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "leave balance history"

    def __str__(self) -> str:
        return f"{self.user.get_username()} {self.leave_type} {self.change_amount:+} ({self.reason})"
