from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand

from ...models import LeaveType
from ...services import DEFAULT_MONTHLY_ACCRUAL, accrue_monthly_balances


class Command(BaseCommand):
    help = "Credit the monthly annual and casual leave accrual to every active user."

    def add_arguments(self, parser):
        accrual = getattr(settings, "WORKFORCE_MONTHLY_ACCRUAL", DEFAULT_MONTHLY_ACCRUAL)
        parser.add_argument(
            "--annual",
            type=Decimal,
            default=Decimal(str(accrual.get(LeaveType.ANNUAL.value, "0"))),
            help="Annual leave days to add (default: %(default)s).",
        )
        parser.add_argument(
            "--casual",
            type=Decimal,
            default=Decimal(str(accrual.get(LeaveType.CASUAL.value, "0"))),
            help="Casual leave days to add (default: %(default)s).",
        )

    def handle(self, *args, **options):
        amounts = {
            leave_type: amount
            for leave_type, amount in (
                (LeaveType.ANNUAL.value, options["annual"]),
                (LeaveType.CASUAL.value, options["casual"]),
            )
            if amount
        }
        if not amounts:
            self.stdout.write(self.style.WARNING("Nothing to accrue."))
            return
        count = accrue_monthly_balances(amounts)
        self.stdout.write(self.style.SUCCESS(f"Accrued leave for {count} user(s)."))
