"""Signal handlers for the workforce app."""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Employee, LeaveBalance

User = get_user_model()


@receiver(post_save, sender=User)
def provision_employee(sender, instance: User, created: bool, **kwargs) -> None:
    """Give every new user a role profile and a zero balance for each leave type."""
    if not created:
        return
    Employee.ensure_for_user(instance)
    LeaveBalance.ensure_for_user(instance)
