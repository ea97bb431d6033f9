"""Forms collecting input for leave and swap requests."""
from __future__ import annotations

from typing import Any

from django import forms
from django.contrib.auth import get_user_model
from django.utils import timezone

from . import services
from .models import Employee, LeaveRequest, LeaveType, Shift

User = get_user_model()


class LeaveRequestForm(forms.ModelForm):
    """Form an employee uses to submit a new leave request."""

    def __init__(self, *args: Any, user, **kwargs: Any) -> None:
        self.request_user = user
        super().__init__(*args, **kwargs)
        self.fields["start_date"].widget = forms.DateInput(attrs={"type": "date"})
        self.fields["end_date"].widget = forms.DateInput(attrs={"type": "date"})
        self.fields["notes"].widget = forms.Textarea(attrs={"rows": 3, "placeholder": "Reason for leave..."})

    class Meta:
        model = LeaveRequest
        fields = ["leave_type", "start_date", "end_date", "notes"]

    # Date range is checked by LeaveRequest.clean() during model validation.

    def save(self, commit: bool = True) -> LeaveRequest:
        if not commit:
            return super().save(commit=False)
        return services.submit_leave_request(
            self.request_user,
            self.cleaned_data["leave_type"],
            self.cleaned_data["start_date"],
            self.cleaned_data["end_date"],
            notes=self.cleaned_data.get("notes", ""),
        )


class ShiftChoiceField(forms.ModelChoiceField):
    def label_from_instance(self, obj: Shift) -> str:
        return f"{obj.date:%a %d %b %Y} - {obj.get_shift_type_display()}"


class SwapRequestForm(forms.Form):
    """Pick a colleague and the two upcoming shifts to exchange."""

    target_user = forms.ModelChoiceField(queryset=User.objects.none(), label="Colleague")
    requester_shift = ShiftChoiceField(queryset=Shift.objects.none(), label="Your shift")
    target_shift = ShiftChoiceField(queryset=Shift.objects.none(), label="Their shift")

    def __init__(self, *args: Any, user, **kwargs: Any) -> None:
        self.request_user = user
        super().__init__(*args, **kwargs)
        today = timezone.localdate()
        self.fields["target_user"].queryset = (
            User.objects.filter(is_active=True, employee__role=Employee.Role.AGENT)
            .exclude(pk=user.pk)
            .order_by("username")
        )
        self.fields["requester_shift"].queryset = Shift.objects.upcoming(today).filter(user=user)
        self.fields["target_shift"].queryset = Shift.objects.upcoming(today).exclude(user=user)

    def clean(self) -> dict[str, Any]:
        cleaned = super().clean()
        target = cleaned.get("target_user")
        target_shift = cleaned.get("target_shift")
        if target and target_shift and target_shift.user_id != target.pk:
            raise forms.ValidationError("Their shift must belong to the selected colleague.")
        return cleaned

    def save(self):
        return services.submit_swap_request(
            self.request_user,
            self.cleaned_data["target_user"].pk,
            self.cleaned_data["requester_shift"].pk,
            self.cleaned_data["target_shift"].pk,
        )


class DecisionForm(forms.Form):
    """Optional comment a reviewer can attach to an approval or rejection."""

    comment = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 2, "placeholder": "Add an optional note"}),
        label="Comment",
    )


class CommentForm(forms.Form):
    content = forms.CharField(
        widget=forms.Textarea(attrs={"rows": 3}),
        label="Add a comment",
    )


class AutoApproveForm(forms.Form):
    enabled = forms.BooleanField(required=False, label="Auto-approve new requests")


class LeaveRequestFilterForm(forms.Form):
    """Filters for the leave request list."""

    start_date = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    end_date = forms.DateField(required=False, widget=forms.DateInput(attrs={"type": "date"}))
    leave_type = forms.ChoiceField(
        required=False,
        choices=[("", "All types")] + list(LeaveType.choices),
    )


class BalanceAdjustmentForm(forms.Form):
    """Allows workforce managers to credit or debit a leave balance."""

    employee = forms.ModelChoiceField(
        queryset=User.objects.filter(is_active=True).order_by("username"),
        label="Employee",
    )
    leave_type = forms.ChoiceField(choices=LeaveType.choices)
    amount = forms.DecimalField(max_digits=5, decimal_places=2)
