"""Views over the leave and shift-swap request workflow."""
from __future__ import annotations

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin, UserPassesTestMixin
from django.core.paginator import Paginator
from django.http import Http404
from django.shortcuts import redirect
from django.urls import reverse_lazy
from django.views.decorators.http import require_POST
from django.views.generic import FormView, TemplateView

from . import services
from .engine import Decision, leave_deciders
from .exceptions import NotFound, WorkflowError
from .forms import (
    AutoApproveForm,
    BalanceAdjustmentForm,
    CommentForm,
    DecisionForm,
    LeaveRequestFilterForm,
    LeaveRequestForm,
    SwapRequestForm,
)
from .models import Employee, LeaveBalance, LeaveBalanceHistory, LeaveRequest, Shift, SwapRequest


DECISIONS = {
    "approve": Decision.APPROVE,
    "reject": Decision.REJECT,
}


def _items_per_page() -> int:
    return getattr(settings, "WORKFORCE_ITEMS_PER_PAGE", 10)


class WorkforceManagerRequiredMixin(UserPassesTestMixin):
    """Gatekeeper for views reserved to workforce managers."""

    def test_func(self):
        return Employee.ensure_for_user(self.request.user).is_workforce_manager

    def handle_no_permission(self):
        if not self.request.user.is_authenticated:
            return super().handle_no_permission()
        messages.error(self.request, "Workforce manager access required for this section.")
        return redirect("workforce:dashboard")


class DashboardView(LoginRequiredMixin, TemplateView):
    """Employees land here to review their requests, swaps and balances."""

    template_name = "workforce/dashboard.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user
        employee = Employee.ensure_for_user(user)
        leave_requests = user.leave_requests.all()
        context.update(
            {
                "employee": employee,
                "pending_requests": leave_requests.pending(),
                "approved_requests": leave_requests.filter(status=LeaveRequest.Status.APPROVED),
                "rejected_requests": leave_requests.filter(status=LeaveRequest.Status.REJECTED),
                "incoming_swaps": user.incoming_swap_requests.filter(
                    status=SwapRequest.Status.PENDING_ACCEPTANCE
                ).select_related("requester"),
                "outgoing_swaps": user.outgoing_swap_requests.select_related("target_user")[:10],
                "balances": LeaveBalance.objects.filter(user=user),
            }
        )
        if employee.is_manager:
            context["awaiting_review"] = LeaveRequest.objects.pending().count() + SwapRequest.objects.filter(
                status=SwapRequest.Status.PENDING_APPROVAL
            ).count()
        return context


class LeaveRequestListView(LoginRequiredMixin, TemplateView):
    """Agents see their own requests, managers see everyone's."""

    template_name = "workforce/leave_list.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        queryset = LeaveRequest.objects.visible_to(self.request.user).select_related("user")
        filter_form = LeaveRequestFilterForm(self.request.GET or None)
        if filter_form.is_valid():
            filters = filter_form.cleaned_data
            if filters.get("start_date"):
                queryset = queryset.filter(start_date__gte=filters["start_date"])
            if filters.get("end_date"):
                queryset = queryset.filter(end_date__lte=filters["end_date"])
            if filters.get("leave_type"):
                queryset = queryset.filter(leave_type=filters["leave_type"])
        paginator = Paginator(queryset.order_by("-created_at"), _items_per_page())
        page = paginator.get_page(self.request.GET.get("page"))
        context.update(
            {
                "filter_form": filter_form,
                "page_obj": page,
                "requests": page.object_list,
            }
        )
        return context


class ApplyForLeaveView(LoginRequiredMixin, FormView):
    """Handles the apply-for-leave form flow."""

    template_name = "workforce/leave_form.html"
    form_class = LeaveRequestForm
    success_url = reverse_lazy("workforce:leave_list")

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs["user"] = self.request.user
        return kwargs

    def form_valid(self, form: LeaveRequestForm):
        try:
            leave_request = form.save()
        except WorkflowError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        if leave_request.status == LeaveRequest.Status.APPROVED:
            messages.success(
                self.request,
                f"{leave_request.get_leave_type_display()} leave for {leave_request.total_days} day(s) approved.",
            )
        else:
            messages.success(
                self.request,
                f"{leave_request.get_leave_type_display()} leave for {leave_request.total_days} day(s) "
                "submitted for review.",
            )
        return super().form_valid(form)


class LeaveRequestDetailView(LoginRequiredMixin, TemplateView):
    template_name = "workforce/leave_detail.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        try:
            leave_request = services.find_leave_request(kwargs["pk"])
        except NotFound:
            raise Http404("Leave request not found.")
        if not leave_request.is_visible_to(self.request.user):
            raise Http404("Leave request not found.")
        employee = Employee.ensure_for_user(self.request.user)
        context.update(
            {
                "leave_request": leave_request,
                "comments": leave_request.comments.select_related("user"),
                "can_decide": employee.role in leave_deciders(leave_request),
                "decision_form": DecisionForm(),
                "comment_form": CommentForm(),
            }
        )
        return context


@login_required
@require_POST
def review_leave_request(request, pk: int, action: str):
    """Approve or reject the current review stage of a leave request."""

    decision = DECISIONS.get(action)
    if not decision:
        messages.error(request, "Unknown approval action.")
        return redirect("workforce:leave_detail", pk=pk)

    form = DecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Submit your decision using the provided form.")
        return redirect("workforce:leave_detail", pk=pk)

    comment = form.cleaned_data["comment"]
    if decision == Decision.REJECT and not comment.strip():
        messages.error(request, "Please provide a comment when rejecting a request.")
        return redirect("workforce:leave_detail", pk=pk)

    try:
        leave_request = services.decide_leave(request.user, pk, decision, comment)
    except NotFound as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:leave_list")
    except WorkflowError as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:leave_detail", pk=pk)

    owner = leave_request.user.get_username()
    if leave_request.status == LeaveRequest.Status.APPROVED:
        messages.success(request, f"Approved {owner}'s {leave_request.get_leave_type_display()} leave.")
    elif leave_request.status == LeaveRequest.Status.REJECTED:
        messages.warning(request, f"Rejected {owner}'s {leave_request.get_leave_type_display()} leave.")
    else:
        messages.success(request, "Recorded your approval. The request is awaiting workforce manager review.")
    return redirect("workforce:leave_detail", pk=pk)


class ScheduleView(LoginRequiredMixin, TemplateView):
    """Upcoming shifts; agents see their own, managers see the whole rota."""

    template_name = "workforce/schedule.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        queryset = (
            Shift.objects.visible_to(self.request.user)
            .upcoming()
            .select_related("user", "original_user", "swapped_with_user")
        )
        paginator = Paginator(queryset.order_by("date", "user__username"), _items_per_page())
        page = paginator.get_page(self.request.GET.get("page"))
        context.update({"page_obj": page, "shifts": page.object_list})
        return context


class LeaveBalanceListView(LoginRequiredMixin, TemplateView):
    """Current balances and the most recent changes behind them."""

    template_name = "workforce/balance_list.html"
    history_limit = 20

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        user = self.request.user
        context.update(
            {
                "balances": LeaveBalance.objects.visible_to(user).select_related("user"),
                "history": LeaveBalanceHistory.objects.visible_to(user).select_related("user", "created_by")[
                    : self.history_limit
                ],
            }
        )
        return context


class SwapRequestListView(LoginRequiredMixin, TemplateView):
    template_name = "workforce/swap_list.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        queryset = SwapRequest.objects.visible_to(self.request.user).select_related("requester", "target_user")
        paginator = Paginator(queryset.order_by("-created_at"), _items_per_page())
        page = paginator.get_page(self.request.GET.get("page"))
        context.update({"page_obj": page, "swap_requests": page.object_list})
        return context


class CreateSwapRequestView(LoginRequiredMixin, FormView):
    """Request to swap shifts with a colleague."""

    template_name = "workforce/swap_form.html"
    form_class = SwapRequestForm
    success_url = reverse_lazy("workforce:swap_list")

    def get_form_kwargs(self):
        kwargs = super().get_form_kwargs()
        kwargs["user"] = self.request.user
        return kwargs

    def form_valid(self, form: SwapRequestForm):
        try:
            swap_request = form.save()
        except WorkflowError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        messages.success(
            self.request,
            f"Swap request sent to {swap_request.target_user.get_username()}.",
        )
        return super().form_valid(form)


class SwapRequestDetailView(LoginRequiredMixin, TemplateView):
    template_name = "workforce/swap_detail.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        try:
            swap_request = services.find_swap_request(kwargs["pk"])
        except NotFound:
            raise Http404("Swap request not found.")
        user = self.request.user
        if not swap_request.is_visible_to(user):
            raise Http404("Swap request not found.")
        employee = Employee.ensure_for_user(user)
        context.update(
            {
                "swap_request": swap_request,
                "comments": swap_request.comments.select_related("user"),
                "can_respond": (
                    swap_request.status == SwapRequest.Status.PENDING_ACCEPTANCE
                    and swap_request.target_user_id == user.pk
                ),
                "can_decide": (
                    swap_request.status == SwapRequest.Status.PENDING_APPROVAL and employee.is_manager
                ),
                "decision_form": DecisionForm(),
                "comment_form": CommentForm(),
            }
        )
        return context


@login_required
@require_POST
def respond_swap_request(request, pk: int, action: str):
    """The colleague asked to swap accepts or declines."""

    responses = {"accept": True, "decline": False}
    if action not in responses:
        messages.error(request, "Unknown response.")
        return redirect("workforce:swap_detail", pk=pk)
    try:
        swap_request = services.respond_to_swap(request.user, pk, responses[action])
    except NotFound as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:swap_list")
    except WorkflowError as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:swap_detail", pk=pk)

    if swap_request.status == SwapRequest.Status.PENDING_APPROVAL:
        messages.success(request, "Swap accepted. It is now awaiting manager approval.")
    else:
        messages.info(request, "Swap declined.")
    return redirect("workforce:swap_detail", pk=pk)


@login_required
@require_POST
def review_swap_request(request, pk: int, action: str):
    """A team lead or workforce manager approves or rejects an accepted swap."""

    decision = DECISIONS.get(action)
    if not decision:
        messages.error(request, "Unknown approval action.")
        return redirect("workforce:swap_detail", pk=pk)

    form = DecisionForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Submit your decision using the provided form.")
        return redirect("workforce:swap_detail", pk=pk)

    try:
        swap_request = services.decide_swap(request.user, pk, decision, form.cleaned_data["comment"])
    except NotFound as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:swap_list")
    except WorkflowError as exc:
        messages.error(request, "; ".join(exc.messages))
        return redirect("workforce:swap_detail", pk=pk)

    if swap_request.status == SwapRequest.Status.APPROVED:
        messages.success(request, "Swap approved and shifts exchanged.")
    else:
        messages.warning(request, "Swap rejected.")
    return redirect("workforce:swap_detail", pk=pk)


@login_required
@require_POST
def post_comment(request, kind: str, pk: int):
    if kind == "leave":
        finder, detail = services.find_leave_request, "workforce:leave_detail"
    elif kind == "swap":
        finder, detail = services.find_swap_request, "workforce:swap_detail"
    else:
        raise Http404("Unknown request type.")

    form = CommentForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Comments cannot be empty.")
        return redirect(detail, pk=pk)
    try:
        services.add_comment(request.user, finder(pk), form.cleaned_data["content"])
    except WorkflowError as exc:
        messages.error(request, "; ".join(exc.messages))
    return redirect(detail, pk=pk)


class SettingsView(LoginRequiredMixin, WorkforceManagerRequiredMixin, FormView):
    """Workforce manager settings, currently the auto-approve switch."""

    template_name = "workforce/settings.html"
    form_class = AutoApproveForm
    success_url = reverse_lazy("workforce:settings")

    def get_initial(self):
        return {"enabled": services.is_auto_approve_enabled()}

    def form_valid(self, form: AutoApproveForm):
        try:
            services.set_auto_approve(self.request.user, form.cleaned_data["enabled"])
        except WorkflowError as exc:
            messages.error(self.request, "; ".join(exc.messages))
            return self.form_invalid(form)
        messages.success(self.request, "Settings saved successfully!")
        return super().form_valid(form)


class BalanceAdjustmentView(LoginRequiredMixin, WorkforceManagerRequiredMixin, FormView):
    """Allows workforce managers to adjust employee leave balances."""

    template_name = "workforce/balance_adjust.html"
    form_class = BalanceAdjustmentForm
    success_url = reverse_lazy("workforce:adjust_balance")

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        context["balances"] = LeaveBalance.objects.select_related("user")
        return context

    def form_valid(self, form: BalanceAdjustmentForm):
        employee = form.cleaned_data["employee"]
        try:
            services.adjust_leave_balance(
                self.request.user,
                employee,
                form.cleaned_data["leave_type"],
                form.cleaned_data["amount"],
            )
        except WorkflowError as exc:
            form.add_error(None, exc)
            return self.form_invalid(form)
        messages.success(self.request, f"Updated balances for {employee.get_username()}.")
        return super().form_valid(form)
