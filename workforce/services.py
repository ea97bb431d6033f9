"""Persistence and orchestration around the approval workflow engine.

The engine decides; this module loads the records it decides on, and commits
its results. Each transition is written with a compare-and-swap on the
request's ``(status, version)`` pair so two decisions racing on the same stale
read cannot both succeed, and any shift exchange is committed in the same
transaction as the status change.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional, Union

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from . import engine
from .exceptions import (
    ConflictError,
    InvalidAdjustment,
    InvalidComment,
    InvalidLeaveType,
    InvalidShift,
    NotFound,
    Unauthorized,
    WorkflowError,
)
from .models import (
    Comment,
    Employee,
    LeaveBalance,
    LeaveBalanceHistory,
    LeaveRequest,
    LeaveType,
    Setting,
    Shift,
    SwapRequest,
)

logger = logging.getLogger(__name__)

User = get_user_model()

DEFAULT_MONTHLY_ACCRUAL = {
    LeaveType.ANNUAL.value: "1.25",
    LeaveType.CASUAL.value: "0.5",
}

LEAVE_EVENT_MESSAGES = {
    LeaveRequest.Status.PENDING_WORKFORCE_MANAGER.value: "Approved by team lead {actor}.",
    LeaveRequest.Status.APPROVED.value: "Approved by workforce manager {actor}.",
    LeaveRequest.Status.REJECTED.value: "Rejected by {actor}.",
}

SWAP_EVENT_MESSAGES = {
    SwapRequest.Status.PENDING_APPROVAL.value: "{actor} accepted the swap.",
    SwapRequest.Status.DECLINED.value: "{actor} declined the swap.",
    SwapRequest.Status.APPROVED.value: "Swap approved by {actor}; shifts exchanged.",
    SwapRequest.Status.REJECTED.value: "Swap rejected by {actor}.",
}

AnyRequest = Union[LeaveRequest, SwapRequest]


def _display_name(user) -> str:
    return user.get_full_name() or user.get_username()


def role_of(user) -> str:
    return Employee.ensure_for_user(user).role


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_setting(key: str, default: Optional[str] = None) -> Optional[str]:
    try:
        return Setting.objects.get(key=key).value
    except Setting.DoesNotExist:
        return default


def set_setting(key: str, value: str) -> Setting:
    setting, _ = Setting.objects.update_or_create(key=key, defaults={"value": value})
    return setting


def is_auto_approve_enabled() -> bool:
    return get_setting(Setting.AUTO_APPROVE_KEY, "false") == "true"


def set_auto_approve(actor, enabled: bool) -> Setting:
    if role_of(actor) != Employee.Role.WORKFORCE_MANAGER:
        logger.warning("%s attempted to change the auto-approve setting", actor.get_username())
        raise Unauthorized("Only workforce managers can change settings.")
    setting = set_setting(Setting.AUTO_APPROVE_KEY, "true" if enabled else "false")
    logger.info("Auto-approve %s by %s", "enabled" if enabled else "disabled", actor.get_username())
    return setting


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_leave_request(pk) -> LeaveRequest:
    try:
        return LeaveRequest.objects.select_related("user").get(pk=pk)
    except (LeaveRequest.DoesNotExist, ValueError, TypeError):
        raise NotFound("Leave request not found.") from None


def find_swap_request(pk) -> SwapRequest:
    try:
        return SwapRequest.objects.select_related("requester", "target_user").get(pk=pk)
    except (SwapRequest.DoesNotExist, ValueError, TypeError):
        raise NotFound("Swap request not found.") from None


def find_shift(pk) -> Optional[Shift]:
    try:
        return Shift.objects.filter(pk=pk).first()
    except (ValueError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Committing transitions
# ---------------------------------------------------------------------------


def _record_event(request_obj: AnyRequest, actor, messages: Dict[str, str], status: str) -> None:
    template = messages.get(str(status))
    if actor is None or not template:
        return
    _create_comment(request_obj, actor, template.format(actor=_display_name(actor)), is_system=True)


def _compare_and_swap(model, request_obj: AnyRequest, transition: engine.Transition) -> None:
    updated = model.objects.filter(
        pk=request_obj.pk,
        status=transition.from_status,
        version=request_obj.version,
    ).update(
        status=transition.status,
        version=F("version") + 1,
        updated_at=timezone.now(),
        **transition.stamps,
    )
    if not updated:
        logger.warning(
            "Conflicting update on %s %s (expected %s v%s)",
            model._meta.model_name,
            request_obj.pk,
            transition.from_status,
            request_obj.version,
        )
        raise ConflictError()


def save_leave_transition(
    leave_request: LeaveRequest,
    transition: engine.Transition,
    actor=None,
) -> LeaveRequest:
    with transaction.atomic():
        _compare_and_swap(LeaveRequest, leave_request, transition)
        _record_event(leave_request, actor, LEAVE_EVENT_MESSAGES, transition.status)
    leave_request.refresh_from_db()
    logger.info(
        "Leave request %s moved %s -> %s",
        leave_request.pk,
        transition.from_status,
        transition.status,
    )
    return leave_request


def _exchange_shifts(swap_request: SwapRequest) -> None:
    shifts = {
        shift.pk: shift
        for shift in Shift.objects.select_for_update().filter(
            pk__in=[swap_request.requester_shift_id, swap_request.target_shift_id]
        )
    }
    requester_shift = shifts.get(swap_request.requester_shift_id)
    target_shift = shifts.get(swap_request.target_shift_id)
    if requester_shift is None or requester_shift.user_id != swap_request.requester_id:
        raise InvalidShift("The requester's shift has changed since the swap was requested.")
    if target_shift is None or target_shift.user_id != swap_request.target_user_id:
        raise InvalidShift("The colleague's shift has changed since the swap was requested.")

    for shift, new_owner_id in (
        (requester_shift, swap_request.target_user_id),
        (target_shift, swap_request.requester_id),
    ):
        if shift.original_user_id is None:
            shift.original_user_id = shift.user_id
        shift.swapped_with_user_id = shift.user_id
        shift.user_id = new_owner_id
        shift.save(update_fields=["user", "original_user", "swapped_with_user", "updated_at"])


def save_swap_transition(
    swap_request: SwapRequest,
    transition: engine.Transition,
    actor=None,
) -> SwapRequest:
    with transaction.atomic():
        _compare_and_swap(SwapRequest, swap_request, transition)
        if transition.exchange_shifts:
            _exchange_shifts(swap_request)
        _record_event(swap_request, actor, SWAP_EVENT_MESSAGES, transition.status)
    swap_request.refresh_from_db()
    logger.info(
        "Swap request %s moved %s -> %s%s",
        swap_request.pk,
        transition.from_status,
        transition.status,
        " (shifts exchanged)" if transition.exchange_shifts else "",
    )
    return swap_request


# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------


def submit_leave_request(user, leave_type: str, start_date, end_date, notes: str = "") -> LeaveRequest:
    """Create a leave request, honouring the auto-approve setting as it is now."""
    draft = engine.create_leave_request(
        user.pk,
        leave_type,
        start_date,
        end_date,
        notes=notes,
        auto_approve=is_auto_approve_enabled(),
    )
    with transaction.atomic():
        leave_request = LeaveRequest.objects.create(**draft.as_fields())
        if leave_request.status == LeaveRequest.Status.APPROVED:
            _create_comment(leave_request, user, "Auto-approved on submission.", is_system=True)
    logger.info(
        "Leave request %s submitted by %s (%s)",
        leave_request.pk,
        user.get_username(),
        leave_request.status,
    )
    return leave_request


def decide_leave(actor, pk, decision: str, comment: str = "") -> LeaveRequest:
    leave_request = find_leave_request(pk)
    try:
        transition = engine.decide_leave_request(leave_request, role_of(actor), decision)
    except WorkflowError as exc:
        logger.warning(
            "Refused %r on leave request %s by %s: %s",
            decision,
            pk,
            actor.get_username(),
            exc.code,
        )
        raise
    with transaction.atomic():
        leave_request = save_leave_transition(leave_request, transition, actor)
        if comment.strip():
            _create_comment(leave_request, actor, comment.strip())
    return leave_request


# ---------------------------------------------------------------------------
# Swap requests
# ---------------------------------------------------------------------------


def submit_swap_request(user, target_user_id, requester_shift_id, target_shift_id) -> SwapRequest:
    try:
        target = User.objects.filter(pk=target_user_id).first()
    except (ValueError, TypeError):
        target = None
    if target is None:
        raise NotFound("Colleague not found.")
    draft = engine.create_swap_request(
        user.pk,
        target.pk,
        find_shift(requester_shift_id),
        find_shift(target_shift_id),
    )
    swap_request = SwapRequest.objects.create(**draft.as_fields())
    logger.info(
        "Swap request %s created by %s with %s",
        swap_request.pk,
        user.get_username(),
        target.get_username(),
    )
    return swap_request


def respond_to_swap(actor, pk, accept: bool) -> SwapRequest:
    swap_request = find_swap_request(pk)
    try:
        transition = engine.respond_to_swap_request(swap_request, actor.pk, accept)
    except WorkflowError as exc:
        logger.warning(
            "Refused response on swap request %s by %s: %s",
            pk,
            actor.get_username(),
            exc.code,
        )
        raise
    return save_swap_transition(swap_request, transition, actor)


def decide_swap(actor, pk, decision: str, comment: str = "") -> SwapRequest:
    swap_request = find_swap_request(pk)
    try:
        transition = engine.decide_swap_request(swap_request, role_of(actor), decision)
    except WorkflowError as exc:
        logger.warning(
            "Refused %r on swap request %s by %s: %s",
            decision,
            pk,
            actor.get_username(),
            exc.code,
        )
        raise
    with transaction.atomic():
        swap_request = save_swap_transition(swap_request, transition, actor)
        if comment.strip():
            _create_comment(swap_request, actor, comment.strip())
    return swap_request


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def _create_comment(request_obj: AnyRequest, user, content: str, is_system: bool = False) -> Comment:
    if isinstance(request_obj, LeaveRequest):
        return Comment.objects.create(leave_request=request_obj, user=user, content=content, is_system=is_system)
    return Comment.objects.create(swap_request=request_obj, user=user, content=content, is_system=is_system)


def add_comment(actor, request_obj: AnyRequest, content: str) -> Comment:
    """Post a discussion comment; only people involved and managers may comment."""
    content = (content or "").strip()
    if not content:
        raise InvalidComment()
    if not request_obj.is_visible_to(actor):
        raise Unauthorized("You cannot comment on this request.")
    return _create_comment(request_obj, actor, content)


# ---------------------------------------------------------------------------
# Leave balances
# ---------------------------------------------------------------------------


def adjust_leave_balance(actor, user, leave_type: str, amount: Decimal) -> LeaveBalanceHistory:
    if role_of(actor) != Employee.Role.WORKFORCE_MANAGER:
        raise Unauthorized("Only workforce managers can adjust leave balances.")
    if leave_type not in LeaveType.values:
        raise InvalidLeaveType(f"Unknown leave type: {leave_type!r}.")
    if not amount:
        raise InvalidAdjustment("Adjustment amount cannot be zero.")
    balance, _ = LeaveBalance.objects.get_or_create(user=user, leave_type=leave_type)
    entry = balance.apply_change(
        amount,
        LeaveBalanceHistory.Reason.MANUAL_ADJUSTMENT,
        created_by=actor,
    )
    logger.info(
        "%s adjusted %s %s balance by %s",
        actor.get_username(),
        user.get_username(),
        leave_type,
        amount,
    )
    return entry


@transaction.atomic
def accrue_monthly_balances(amounts: Optional[Dict[str, str]] = None) -> int:
    """Credit the monthly accrual to every active user. Returns the user count.

    A balance already at the column ceiling is left unchanged and logged.
    """
    amounts = amounts or getattr(settings, "WORKFORCE_MONTHLY_ACCRUAL", DEFAULT_MONTHLY_ACCRUAL)
    count = 0
    for user in User.objects.filter(is_active=True).order_by("pk").iterator():
        for leave_type, amount in amounts.items():
            balance, _ = LeaveBalance.objects.get_or_create(user=user, leave_type=leave_type)
            try:
                balance.apply_change(Decimal(str(amount)), LeaveBalanceHistory.Reason.MONTHLY_ACCRUAL)
            except InvalidAdjustment as exc:
                logger.warning(
                    "Skipped %s accrual for %s: %s",
                    leave_type,
                    user.get_username(),
                    "; ".join(exc.messages),
                )
        count += 1
    logger.info("Accrued monthly leave for %d user(s)", count)
    return count
