# Generated manually for the workforce requests schema.
from __future__ import annotations

import decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


LEAVE_TYPE_CHOICES = [
    ("sick", "Sick"),
    ("annual", "Annual"),
    ("casual", "Casual"),
    ("public_holiday", "Public Holiday"),
    ("bereavement", "Bereavement"),
]

SHIFT_TYPE_CHOICES = [
    ("AM", "AM Shift"),
    ("PM", "PM Shift"),
    ("BET", "BET Shift"),
    ("OFF", "Day Off"),
]


def _id_field():
    return models.BigAutoField(
        auto_created=True,
        primary_key=True,
        serialize=False,
        verbose_name="ID",
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", _id_field()),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("agent", "Agent"),
                            ("team_lead", "Team Lead"),
                            ("workforce_manager", "Workforce Manager"),
                        ],
                        default="agent",
                        max_length=20,
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="employee",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["user__username"],
            },
        ),
        migrations.CreateModel(
            name="Setting",
            fields=[
                ("id", _id_field()),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.TextField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="Shift",
            fields=[
                ("id", _id_field()),
                ("date", models.DateField()),
                ("shift_type", models.CharField(choices=SHIFT_TYPE_CHOICES, max_length=3)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "original_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "swapped_with_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="shifts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["date", "user__username"],
            },
        ),
        migrations.CreateModel(
            name="LeaveRequest",
            fields=[
                ("id", _id_field()),
                ("leave_type", models.CharField(choices=LEAVE_TYPE_CHOICES, max_length=20)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_team_lead", "Pending Team Lead"),
                            ("pending_workforce_manager", "Pending Workforce Manager"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending_team_lead",
                        max_length=30,
                    ),
                ),
                ("team_lead_decided_at", models.DateTimeField(blank=True, null=True)),
                ("manager_decided_at", models.DateTimeField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="leave_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="SwapRequest",
            fields=[
                ("id", _id_field()),
                ("requester_original_date", models.DateField()),
                (
                    "requester_original_shift_type",
                    models.CharField(choices=SHIFT_TYPE_CHOICES, max_length=3),
                ),
                ("target_original_date", models.DateField()),
                (
                    "target_original_shift_type",
                    models.CharField(choices=SHIFT_TYPE_CHOICES, max_length=3),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_acceptance", "Pending Acceptance"),
                            ("pending_approval", "Pending Approval"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("declined", "Declined"),
                        ],
                        default="pending_acceptance",
                        max_length=20,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=0)),
                ("executed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "requester",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="outgoing_swap_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "requester_shift",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="workforce.shift",
                    ),
                ),
                (
                    "target_shift",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="workforce.shift",
                    ),
                ),
                (
                    "target_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="incoming_swap_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", _id_field()),
                ("content", models.TextField()),
                ("is_system", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "leave_request",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="workforce.leaverequest",
                    ),
                ),
                (
                    "swap_request",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="workforce.swaprequest",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="workforce_comments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="LeaveBalance",
            fields=[
                ("id", _id_field()),
                ("leave_type", models.CharField(choices=LEAVE_TYPE_CHOICES, max_length=20)),
                (
                    "balance",
                    models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=5),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="leave_balances",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["user__username", "leave_type"],
                "unique_together": {("user", "leave_type")},
            },
        ),
        migrations.CreateModel(
            name="LeaveBalanceHistory",
            fields=[
                ("id", _id_field()),
                ("leave_type", models.CharField(choices=LEAVE_TYPE_CHOICES, max_length=20)),
                ("change_amount", models.DecimalField(decimal_places=2, max_digits=5)),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("monthly_accrual", "Monthly accrual"),
                            ("manual_adjustment", "Manual adjustment"),
                        ],
                        max_length=30,
                    ),
                ),
                ("balance_before", models.DecimalField(decimal_places=2, max_digits=5)),
                ("balance_after", models.DecimalField(decimal_places=2, max_digits=5)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="leave_balance_history",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "verbose_name_plural": "leave balance history",
            },
        ),
    ]
