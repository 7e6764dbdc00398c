"""Result and error types for evaluation services.

Every service operation returns Ok or Err instead of raising; callers
branch on the type. ErrorCode is the closed failure taxonomy shared by the
request lifecycle, OTP verification, the stats wizard and the record store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(StrEnum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STATUS_CONFLICT = "STATUS_CONFLICT"
    OTP_INVALID = "OTP_INVALID"
    MISSING_MANDATORY_BATTERY = "MISSING_MANDATORY_BATTERY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the operation's value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome.

    Attributes:
        code: Taxonomy code
        message: Human-readable description (safe to show to the caller)
        field_errors: Per-field validation messages (VALIDATION_ERROR only)
        trace_id: Correlation id for INTERNAL_ERROR log lookups
    """

    code: ErrorCode
    message: str
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    trace_id: str | None = None

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err


class OtpIntegrityError(RuntimeError):
    """More than one ACCEPTED request shares a (guide, code) pair."""

    def __init__(self, guide_id: str, match_count: int):
        self.guide_id = guide_id
        self.match_count = match_count
        super().__init__(f"OTP collision for guide {guide_id}: {match_count} accepted requests match")


def new_trace_id(operation: str) -> str:
    """Build a trace id of the form ``<OPERATION>_<epoch-ms>``."""
    return f"{operation.upper()}_{int(time.time() * 1000)}"


def internal_error(operation: str, message: str = "Unexpected error") -> Err:
    return Err(code=ErrorCode.INTERNAL_ERROR, message=message, trace_id=new_trace_id(operation))
