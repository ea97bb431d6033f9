from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from workforce.models import Employee, Shift, ShiftType

User = get_user_model()


def make_user(username: str, role: str = Employee.Role.AGENT, **extra):
    user = User.objects.create_user(username=username, password="pass123", **extra)
    Employee.objects.filter(user=user).update(role=role)
    return user


def make_shift(user, days_ahead: int = 3, shift_type: str = ShiftType.AM) -> Shift:
    return Shift.objects.create(
        user=user,
        date=timezone.localdate() + timedelta(days=days_ahead),
        shift_type=shift_type,
    )
