"""Typed failures raised by the request workflow.

Every error is a ``ValidationError`` so the view layer can render it through
``exc.messages`` the same way it renders form and model validation failures.
"""
from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError


class WorkflowError(ValidationError):
    """Base class for all recoverable workflow failures."""

    code = "workflow_error"
    default_message = "The request could not be processed."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message, code=self.code)


class InvalidRange(WorkflowError):
    code = "invalid_range"
    default_message = "End date cannot be before start date."


class InvalidLeaveType(WorkflowError):
    code = "invalid_leave_type"
    default_message = "Unknown leave type."


class InvalidTarget(WorkflowError):
    code = "invalid_target"
    default_message = "You cannot swap shifts with yourself."


class InvalidShift(WorkflowError):
    code = "invalid_shift"
    default_message = "The selected shift is not available for swapping."


class Unauthorized(WorkflowError):
    code = "unauthorized"
    default_message = "You are not authorised to perform this action."


class NotFound(WorkflowError):
    code = "not_found"
    default_message = "The requested record does not exist."


class TerminalState(WorkflowError):
    code = "terminal_state"
    default_message = "This request has already been finalised."


class InvalidTransition(WorkflowError):
    code = "invalid_transition"
    default_message = "This action is not available at the request's current stage."


class InvalidDecision(WorkflowError):
    code = "invalid_decision"
    default_message = "Invalid decision."


class ConflictError(WorkflowError):
    code = "conflict"
    default_message = "This request was updated by someone else. Reload it and try again."


class InvalidComment(WorkflowError):
    code = "invalid_comment"
    default_message = "Comments cannot be empty."


class InvalidAdjustment(WorkflowError):
    code = "invalid_adjustment"
    default_message = "Invalid balance adjustment."
