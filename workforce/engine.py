"""Approval workflow for leave and shift-swap requests.

Every function in this module is a decision over the objects passed in. Nothing
is read from or written to the database: the caller receives a draft or a
``Transition`` and commits it, together with its side effects, in one
transaction (see ``workforce.services``).

Leave requests move ``pending_team_lead`` -> ``pending_workforce_manager`` ->
``approved``, and can be rejected at either review stage. Swap requests move
``pending_acceptance`` -> ``pending_approval`` -> ``approved``; the colleague
being asked may decline, and a manager may reject.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional

from django.db import models
from django.utils import timezone

from .exceptions import (
    InvalidDecision,
    InvalidLeaveType,
    InvalidRange,
    InvalidShift,
    InvalidTarget,
    InvalidTransition,
    TerminalState,
    Unauthorized,
)
from .models import MANAGER_ROLES, Employee, LeaveRequest, LeaveType, SwapRequest

Role = Employee.Role
LeaveStatus = LeaveRequest.Status
SwapStatus = SwapRequest.Status


class Decision(models.TextChoices):
    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


@dataclass(frozen=True)
class LeaveDraft:
    """Field values for a leave request that is about to be inserted."""

    user_id: Any
    leave_type: str
    start_date: date
    end_date: date
    notes: str
    status: str
    team_lead_decided_at: Optional[datetime]
    manager_decided_at: Optional[datetime]
    created_at: datetime

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SwapDraft:
    """Field values for a swap request, including the shift snapshots."""

    requester_id: Any
    target_user_id: Any
    requester_shift_id: Any
    target_shift_id: Any
    requester_original_date: date
    requester_original_shift_type: str
    target_original_date: date
    target_original_shift_type: str
    status: str
    created_at: datetime

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Transition:
    """A status change plus every side effect that must be committed with it."""

    from_status: str
    status: str
    stamps: Dict[str, datetime] = field(default_factory=dict)
    exchange_shifts: bool = False


# (current status, decision) -> (next status, timestamp column, permitted roles)
LEAVE_TRANSITIONS = {
    (LeaveStatus.PENDING_TEAM_LEAD.value, Decision.APPROVE.value): (
        LeaveStatus.PENDING_WORKFORCE_MANAGER,
        "team_lead_decided_at",
        MANAGER_ROLES,
    ),
    (LeaveStatus.PENDING_TEAM_LEAD.value, Decision.REJECT.value): (
        LeaveStatus.REJECTED,
        "team_lead_decided_at",
        MANAGER_ROLES,
    ),
    (LeaveStatus.PENDING_WORKFORCE_MANAGER.value, Decision.APPROVE.value): (
        LeaveStatus.APPROVED,
        "manager_decided_at",
        (Role.WORKFORCE_MANAGER,),
    ),
    (LeaveStatus.PENDING_WORKFORCE_MANAGER.value, Decision.REJECT.value): (
        LeaveStatus.REJECTED,
        "manager_decided_at",
        (Role.WORKFORCE_MANAGER,),
    ),
}


def _coerce_decision(decision: str) -> Decision:
    try:
        return Decision(decision)
    except ValueError:
        raise InvalidDecision(f"Unknown decision: {decision!r}.") from None


def _ensure_status(request, expected: str) -> None:
    if request.status in request.TERMINAL_STATUSES:
        raise TerminalState()
    if request.status != expected:
        raise InvalidTransition()


def create_leave_request(
    owner_id,
    leave_type: str,
    start_date: date,
    end_date: date,
    notes: str = "",
    auto_approve: bool = False,
    now: Optional[datetime] = None,
) -> LeaveDraft:
    """Validate a new leave request and decide its initial status.

    With ``auto_approve`` the request skips both review stages and both decision
    timestamps are set to the creation time.
    """
    if leave_type not in LeaveType.values:
        raise InvalidLeaveType(f"Unknown leave type: {leave_type!r}.")
    if end_date < start_date:
        raise InvalidRange()
    now = now or timezone.now()
    if auto_approve:
        return LeaveDraft(
            user_id=owner_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            notes=notes or "",
            status=LeaveStatus.APPROVED,
            team_lead_decided_at=now,
            manager_decided_at=now,
            created_at=now,
        )
    return LeaveDraft(
        user_id=owner_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        notes=notes or "",
        status=LeaveStatus.PENDING_TEAM_LEAD,
        team_lead_decided_at=None,
        manager_decided_at=None,
        created_at=now,
    )


def decide_leave_request(
    request,
    actor_role: str,
    decision: str,
    now: Optional[datetime] = None,
) -> Transition:
    decision = _coerce_decision(decision)
    if request.status in LeaveRequest.TERMINAL_STATUSES:
        raise TerminalState()
    try:
        next_status, stamp, roles = LEAVE_TRANSITIONS[(str(request.status), decision.value)]
    except KeyError:
        raise InvalidTransition() from None
    if actor_role not in roles:
        raise Unauthorized("Your role cannot decide on requests at this stage.")
    return Transition(
        from_status=request.status,
        status=next_status,
        stamps={stamp: now or timezone.now()},
    )


def leave_deciders(request) -> tuple:
    """Roles allowed to decide on ``request`` at its current stage; empty once final."""
    stage = LEAVE_TRANSITIONS.get((str(request.status), Decision.APPROVE.value))
    return stage[2] if stage else ()


def _check_shift(shift, owner_id, today: date, label: str) -> None:
    if shift is None:
        raise InvalidShift(f"{label} does not exist.")
    if shift.user_id != owner_id:
        raise InvalidShift(f"{label} is not assigned to the expected colleague.")
    if shift.date < today:
        raise InvalidShift(f"{label} is in the past and cannot be swapped.")


def create_swap_request(
    requester_id,
    target_user_id,
    requester_shift,
    target_shift,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> SwapDraft:
    """Validate a swap proposal and snapshot both shifts as they are now."""
    if requester_id == target_user_id:
        raise InvalidTarget()
    today = today or timezone.localdate()
    _check_shift(requester_shift, requester_id, today, "Your shift")
    _check_shift(target_shift, target_user_id, today, "Their shift")
    return SwapDraft(
        requester_id=requester_id,
        target_user_id=target_user_id,
        requester_shift_id=requester_shift.pk,
        target_shift_id=target_shift.pk,
        requester_original_date=requester_shift.date,
        requester_original_shift_type=requester_shift.shift_type,
        target_original_date=target_shift.date,
        target_original_shift_type=target_shift.shift_type,
        status=SwapStatus.PENDING_ACCEPTANCE,
        created_at=now or timezone.now(),
    )


def respond_to_swap_request(request, actor_id, accept: bool) -> Transition:
    _ensure_status(request, SwapStatus.PENDING_ACCEPTANCE)
    if actor_id != request.target_user_id:
        raise Unauthorized("Only the colleague asked to swap can respond to this request.")
    next_status = SwapStatus.PENDING_APPROVAL if accept else SwapStatus.DECLINED
    return Transition(from_status=request.status, status=next_status)


def decide_swap_request(
    request,
    actor_role: str,
    decision: str,
    now: Optional[datetime] = None,
) -> Transition:
    """Approve or reject an accepted swap.

    Approval carries the shift-ownership exchange. Once approved the request is
    terminal, so deciding it again raises ``TerminalState`` instead of swapping
    the shifts back.
    """
    decision = _coerce_decision(decision)
    _ensure_status(request, SwapStatus.PENDING_APPROVAL)
    if actor_role not in MANAGER_ROLES:
        raise Unauthorized("Only team leads and workforce managers can decide on swaps.")
    if decision == Decision.APPROVE:
        return Transition(
            from_status=request.status,
            status=SwapStatus.APPROVED,
            stamps={"executed_at": now or timezone.now()},
            exchange_shifts=True,
        )
    return Transition(from_status=request.status, status=SwapStatus.REJECTED)
