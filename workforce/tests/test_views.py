from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from workforce import services
from workforce.models import Employee, LeaveBalance, LeaveRequest, LeaveType, Shift, ShiftType, SwapRequest

from .helpers import make_shift, make_user


class LeaveViewTests(TestCase):
    def setUp(self):
        self.agent = make_user("agent")
        self.other = make_user("other")
        self.lead = make_user("lead", Employee.Role.TEAM_LEAD)
        self.wfm = make_user("wfm", Employee.Role.WORKFORCE_MANAGER)
        self.today = timezone.localdate()

    def _create_request(self, user=None, days_ahead: int = 5, leave_type=LeaveType.ANNUAL) -> LeaveRequest:
        start = self.today + timedelta(days=days_ahead)
        return services.submit_leave_request(user or self.agent, leave_type, start, start + timedelta(days=1))

    def test_dashboard_requires_login(self):
        response = self.client.get(reverse("workforce:dashboard"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_dashboard_shows_balances_and_requests(self):
        self._create_request()
        self.client.force_login(self.agent)
        response = self.client.get(reverse("workforce:dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["pending_requests"].count(), 1)
        self.assertEqual(len(response.context["balances"]), len(LeaveType.values))
        self.assertNotIn("awaiting_review", response.context)

    def test_manager_dashboard_counts_pending_reviews(self):
        self._create_request()
        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:dashboard"))
        self.assertEqual(response.context["awaiting_review"], 1)

    def test_apply_for_leave(self):
        self.client.force_login(self.agent)
        start = self.today + timedelta(days=10)
        response = self.client.post(
            reverse("workforce:apply"),
            {
                "leave_type": LeaveType.CASUAL,
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=2)).isoformat(),
                "notes": "Moving house",
            },
        )
        self.assertRedirects(response, reverse("workforce:leave_list"))
        leave_request = LeaveRequest.objects.get(user=self.agent)
        self.assertEqual(leave_request.status, LeaveRequest.Status.PENDING_TEAM_LEAD)
        self.assertEqual(leave_request.notes, "Moving house")

    def test_apply_rejects_reversed_dates(self):
        self.client.force_login(self.agent)
        start = self.today + timedelta(days=10)
        response = self.client.post(
            reverse("workforce:apply"),
            {
                "leave_type": LeaveType.ANNUAL,
                "start_date": start.isoformat(),
                "end_date": (start - timedelta(days=1)).isoformat(),
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "End date cannot be before start date.")
        self.assertFalse(LeaveRequest.objects.exists())

    def test_agents_only_list_their_own_requests(self):
        self._create_request()
        self._create_request(user=self.other)
        self.client.force_login(self.agent)
        response = self.client.get(reverse("workforce:leave_list"))
        self.assertEqual([req.user for req in response.context["requests"]], [self.agent])

        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:leave_list"))
        self.assertEqual(len(response.context["requests"]), 2)

    def test_list_filters_and_paginates(self):
        for offset in range(12):
            self._create_request(days_ahead=offset + 1)
        self._create_request(days_ahead=40, leave_type=LeaveType.SICK)
        self.client.force_login(self.agent)

        response = self.client.get(reverse("workforce:leave_list"))
        self.assertEqual(len(response.context["requests"]), 10)
        self.assertEqual(response.context["page_obj"].paginator.count, 13)

        response = self.client.get(reverse("workforce:leave_list"), {"leave_type": LeaveType.SICK})
        self.assertEqual(len(response.context["requests"]), 1)

        response = self.client.get(
            reverse("workforce:leave_list"),
            {"start_date": (self.today + timedelta(days=10)).isoformat()},
        )
        self.assertEqual(response.context["page_obj"].paginator.count, 4)

    def test_detail_hidden_from_other_agents(self):
        leave_request = self._create_request()
        self.client.force_login(self.other)
        response = self.client.get(reverse("workforce:leave_detail", args=[leave_request.pk]))
        self.assertEqual(response.status_code, 404)

    def test_detail_unknown_request_is_404(self):
        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:leave_detail", args=[9999]))
        self.assertEqual(response.status_code, 404)

    def test_team_lead_approves_then_workforce_manager_approves(self):
        leave_request = self._create_request()
        self.client.force_login(self.lead)
        response = self.client.post(reverse("workforce:review_leave", args=[leave_request.pk, "approve"]))
        self.assertRedirects(response, reverse("workforce:leave_detail", args=[leave_request.pk]))
        leave_request.refresh_from_db()
        self.assertEqual(leave_request.status, LeaveRequest.Status.PENDING_WORKFORCE_MANAGER)

        self.client.force_login(self.wfm)
        self.client.post(reverse("workforce:review_leave", args=[leave_request.pk, "approve"]))
        leave_request.refresh_from_db()
        self.assertEqual(leave_request.status, LeaveRequest.Status.APPROVED)

    def test_team_lead_cannot_give_final_approval(self):
        leave_request = self._create_request()
        services.decide_leave(self.lead, leave_request.pk, "approve")
        self.client.force_login(self.lead)
        response = self.client.post(
            reverse("workforce:review_leave", args=[leave_request.pk, "approve"]),
            follow=True,
        )
        self.assertContains(response, "Your role cannot decide on requests at this stage.")
        leave_request.refresh_from_db()
        self.assertEqual(leave_request.status, LeaveRequest.Status.PENDING_WORKFORCE_MANAGER)

    def test_rejection_requires_comment(self):
        leave_request = self._create_request()
        self.client.force_login(self.lead)
        self.client.post(reverse("workforce:review_leave", args=[leave_request.pk, "reject"]), {"comment": ""})
        leave_request.refresh_from_db()
        self.assertEqual(leave_request.status, LeaveRequest.Status.PENDING_TEAM_LEAD)

        self.client.post(
            reverse("workforce:review_leave", args=[leave_request.pk, "reject"]),
            {"comment": "Peak season"},
        )
        leave_request.refresh_from_db()
        self.assertEqual(leave_request.status, LeaveRequest.Status.REJECTED)
        self.assertTrue(leave_request.comments.filter(content="Peak season").exists())

    def test_review_requires_post(self):
        leave_request = self._create_request()
        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:review_leave", args=[leave_request.pk, "approve"]))
        self.assertEqual(response.status_code, 405)

    def test_post_comment(self):
        leave_request = self._create_request()
        self.client.force_login(self.agent)
        response = self.client.post(
            reverse("workforce:post_comment", args=["leave", leave_request.pk]),
            {"content": "Flights booked"},
        )
        self.assertRedirects(response, reverse("workforce:leave_detail", args=[leave_request.pk]))
        self.assertEqual(leave_request.comments.get().content, "Flights booked")

    def test_outsider_comment_is_refused(self):
        leave_request = self._create_request()
        self.client.force_login(self.other)
        self.client.post(
            reverse("workforce:post_comment", args=["leave", leave_request.pk]),
            {"content": "Hello"},
        )
        self.assertFalse(leave_request.comments.exists())


class SwapViewTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.lead = make_user("lead", Employee.Role.TEAM_LEAD)
        self.alice_shift = make_shift(self.alice, days_ahead=2)
        self.bob_shift = make_shift(self.bob, days_ahead=3)

    def test_full_swap_flow(self):
        self.client.force_login(self.alice)
        response = self.client.post(
            reverse("workforce:swap_create"),
            {
                "target_user": self.bob.pk,
                "requester_shift": self.alice_shift.pk,
                "target_shift": self.bob_shift.pk,
            },
        )
        self.assertRedirects(response, reverse("workforce:swap_list"))
        swap_request = SwapRequest.objects.get()

        self.client.force_login(self.bob)
        response = self.client.get(reverse("workforce:swap_detail", args=[swap_request.pk]))
        self.assertTrue(response.context["can_respond"])
        self.client.post(reverse("workforce:respond_swap", args=[swap_request.pk, "accept"]))

        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:swap_detail", args=[swap_request.pk]))
        self.assertTrue(response.context["can_decide"])
        self.client.post(reverse("workforce:review_swap", args=[swap_request.pk, "approve"]))

        swap_request.refresh_from_db()
        self.assertEqual(swap_request.status, SwapRequest.Status.APPROVED)
        self.assertEqual(Shift.objects.get(pk=self.alice_shift.pk).user, self.bob)
        self.assertEqual(Shift.objects.get(pk=self.bob_shift.pk).user, self.alice)

    def test_form_rejects_shift_not_owned_by_colleague(self):
        carol = make_user("carol")
        carol_shift = make_shift(carol)
        self.client.force_login(self.alice)
        response = self.client.post(
            reverse("workforce:swap_create"),
            {
                "target_user": self.bob.pk,
                "requester_shift": self.alice_shift.pk,
                "target_shift": carol_shift.pk,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Their shift must belong to the selected colleague.")
        self.assertFalse(SwapRequest.objects.exists())

    def test_requester_cannot_respond(self):
        swap_request = services.submit_swap_request(
            self.alice, self.bob.pk, self.alice_shift.pk, self.bob_shift.pk
        )
        self.client.force_login(self.alice)
        self.client.post(reverse("workforce:respond_swap", args=[swap_request.pk, "accept"]))
        swap_request.refresh_from_db()
        self.assertEqual(swap_request.status, SwapRequest.Status.PENDING_ACCEPTANCE)

    def test_swap_detail_hidden_from_outsiders(self):
        swap_request = services.submit_swap_request(
            self.alice, self.bob.pk, self.alice_shift.pk, self.bob_shift.pk
        )
        self.client.force_login(make_user("carol"))
        response = self.client.get(reverse("workforce:swap_detail", args=[swap_request.pk]))
        self.assertEqual(response.status_code, 404)


class ManagerOnlyViewTests(TestCase):
    def setUp(self):
        self.agent = make_user("agent")
        self.lead = make_user("lead", Employee.Role.TEAM_LEAD)
        self.wfm = make_user("wfm", Employee.Role.WORKFORCE_MANAGER)

    def test_settings_redirects_non_workforce_managers(self):
        for user in (self.agent, self.lead):
            self.client.force_login(user)
            response = self.client.get(reverse("workforce:settings"))
            self.assertRedirects(response, reverse("workforce:dashboard"))

    def test_settings_anonymous_goes_to_login(self):
        response = self.client.get(reverse("workforce:settings"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_workforce_manager_toggles_auto_approve(self):
        self.client.force_login(self.wfm)
        response = self.client.post(reverse("workforce:settings"), {"enabled": "on"})
        self.assertRedirects(response, reverse("workforce:settings"))
        self.assertTrue(services.is_auto_approve_enabled())

        self.client.post(reverse("workforce:settings"), {})
        self.assertFalse(services.is_auto_approve_enabled())

    def test_balance_adjustment(self):
        self.client.force_login(self.wfm)
        response = self.client.post(
            reverse("workforce:adjust_balance"),
            {"employee": self.agent.pk, "leave_type": LeaveType.ANNUAL, "amount": "3.00"},
        )
        self.assertRedirects(response, reverse("workforce:adjust_balance"))
        balance = LeaveBalance.objects.get(user=self.agent, leave_type=LeaveType.ANNUAL)
        self.assertEqual(balance.balance, Decimal("3"))

    def test_balance_adjustment_refuses_negative_result(self):
        self.client.force_login(self.wfm)
        response = self.client.post(
            reverse("workforce:adjust_balance"),
            {"employee": self.agent.pk, "leave_type": LeaveType.ANNUAL, "amount": "-1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Leave balance cannot go negative.")


class ScheduleViewTests(TestCase):
    def setUp(self):
        self.alice = make_user("alice")
        self.bob = make_user("bob")
        self.lead = make_user("lead", Employee.Role.TEAM_LEAD)
        self.alice_shift = make_shift(self.alice, days_ahead=2)
        self.bob_shift = make_shift(self.bob, days_ahead=3)
        Shift.objects.create(
            user=self.alice,
            date=timezone.localdate() - timedelta(days=1),
            shift_type=ShiftType.PM,
        )

    def test_agent_sees_own_upcoming_shifts(self):
        self.client.force_login(self.alice)
        response = self.client.get(reverse("workforce:schedule"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(list(response.context["shifts"]), [self.alice_shift])

    def test_manager_sees_whole_rota(self):
        self.client.force_login(self.lead)
        response = self.client.get(reverse("workforce:schedule"))
        self.assertEqual(list(response.context["shifts"]), [self.alice_shift, self.bob_shift])

    def test_swapped_shifts_show_previous_owner(self):
        swap_request = services.submit_swap_request(
            self.alice, self.bob.pk, self.alice_shift.pk, self.bob_shift.pk
        )
        services.respond_to_swap(self.bob, swap_request.pk, accept=True)
        services.decide_swap(self.lead, swap_request.pk, "approve")

        self.client.force_login(self.bob)
        response = self.client.get(reverse("workforce:schedule"))
        shift = response.context["shifts"][0]
        self.assertEqual(shift.pk, self.alice_shift.pk)
        self.assertEqual(shift.original_user, self.alice)
        self.assertEqual(shift.swapped_with_user, self.alice)
        self.assertContains(response, "alice")


class LeaveBalanceListViewTests(TestCase):
    def setUp(self):
        self.agent = make_user("agent")
        self.other = make_user("other")
        self.wfm = make_user("wfm", Employee.Role.WORKFORCE_MANAGER)
        services.adjust_leave_balance(self.wfm, self.agent, LeaveType.ANNUAL, Decimal("4"))
        services.adjust_leave_balance(self.wfm, self.other, LeaveType.CASUAL, Decimal("1"))

    def test_agent_sees_own_balances_and_history(self):
        self.client.force_login(self.agent)
        response = self.client.get(reverse("workforce:balance_list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual({balance.user for balance in response.context["balances"]}, {self.agent})
        history = list(response.context["history"])
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].balance_after, Decimal("4"))
        self.assertEqual(history[0].created_by, self.wfm)

    def test_manager_sees_everyone(self):
        self.client.force_login(self.wfm)
        response = self.client.get(reverse("workforce:balance_list"))
        self.assertEqual(
            {balance.user for balance in response.context["balances"]},
            {self.agent, self.other, self.wfm},
        )
        self.assertEqual(len(response.context["history"]), 2)

    def test_requires_login(self):
        response = self.client.get(reverse("workforce:balance_list"))
        self.assertEqual(response.status_code, 302)


class LeaveDecisionButtonTests(TestCase):
    def setUp(self):
        self.agent = make_user("agent")
        self.lead = make_user("lead", Employee.Role.TEAM_LEAD)
        self.wfm = make_user("wfm", Employee.Role.WORKFORCE_MANAGER)
        today = timezone.localdate()
        self.leave_request = services.submit_leave_request(self.agent, LeaveType.ANNUAL, today, today)

    def _can_decide(self, user) -> bool:
        self.client.force_login(user)
        response = self.client.get(reverse("workforce:leave_detail", args=[self.leave_request.pk]))
        return response.context["can_decide"]

    def test_first_stage_offers_buttons_to_both_managers(self):
        self.assertTrue(self._can_decide(self.lead))
        self.assertTrue(self._can_decide(self.wfm))
        self.assertFalse(self._can_decide(self.agent))

    def test_second_stage_offers_buttons_to_workforce_manager_only(self):
        services.decide_leave(self.lead, self.leave_request.pk, "approve")
        self.assertFalse(self._can_decide(self.lead))
        self.assertTrue(self._can_decide(self.wfm))

    def test_final_request_offers_no_buttons(self):
        services.decide_leave(self.lead, self.leave_request.pk, "reject")
        self.assertFalse(self._can_decide(self.wfm))
