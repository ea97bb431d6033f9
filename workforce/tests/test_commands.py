from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from workforce.models import LeaveBalance, LeaveBalanceHistory, LeaveType

from .helpers import make_user


class AccrueLeaveBalancesCommandTests(TestCase):
    def setUp(self):
        self.agent = make_user("agent")

    def _balance(self, leave_type) -> Decimal:
        return LeaveBalance.objects.get(user=self.agent, leave_type=leave_type).balance

    def test_default_accrual(self):
        out = StringIO()
        call_command("accrue_leave_balances", stdout=out)
        self.assertIn("Accrued leave for 1 user(s).", out.getvalue())
        self.assertEqual(self._balance(LeaveType.ANNUAL), Decimal("1.25"))
        self.assertEqual(self._balance(LeaveType.CASUAL), Decimal("0.5"))

    def test_custom_amounts(self):
        call_command("accrue_leave_balances", "--annual", "2", "--casual", "0", stdout=StringIO())
        self.assertEqual(self._balance(LeaveType.ANNUAL), Decimal("2"))
        self.assertEqual(self._balance(LeaveType.CASUAL), Decimal("0"))
        self.assertFalse(
            LeaveBalanceHistory.objects.filter(user=self.agent, leave_type=LeaveType.CASUAL).exists()
        )

    def test_nothing_to_accrue(self):
        out = StringIO()
        call_command("accrue_leave_balances", "--annual", "0", "--casual", "0", stdout=out)
        self.assertIn("Nothing to accrue.", out.getvalue())
        self.assertFalse(LeaveBalanceHistory.objects.exists())
