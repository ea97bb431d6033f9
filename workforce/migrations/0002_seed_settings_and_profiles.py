# Generated manually to seed the auto-approve setting and backfill profiles.
from __future__ import annotations

from django.conf import settings
from django.db import migrations

LEAVE_TYPES = ["sick", "annual", "casual", "public_holiday", "bereavement"]


def seed(apps, schema_editor):
    Setting = apps.get_model("workforce", "Setting")
    Employee = apps.get_model("workforce", "Employee")
    LeaveBalance = apps.get_model("workforce", "LeaveBalance")
    User = apps.get_model(*settings.AUTH_USER_MODEL.split("."))

    Setting.objects.get_or_create(key="wfm_auto_approve", defaults={"value": "false"})
    for user in User.objects.all():
        Employee.objects.get_or_create(user=user)
        for leave_type in LEAVE_TYPES:
            LeaveBalance.objects.get_or_create(user=user, leave_type=leave_type)


def unseed(apps, schema_editor):
    Setting = apps.get_model("workforce", "Setting")
    Setting.objects.filter(key="wfm_auto_approve").delete()


class Migration(migrations.Migration):

    dependencies = [
        ("workforce", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
