"""One-time pairing codes for in-person evaluations.

A guide receives a code when accepting a request; the athlete brings it to
the session and the guide enters it to open the stats wizard. Verification
is enumeration resistant: every failure mode returns the same OTP_INVALID.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from evalcore.config.settings import settings
from evalcore.db.models import Athlete, EvaluationRequest, RequestStatus
from evalcore.evaluations.errors import Err, ErrorCode, Ok, OtpIntegrityError, Result, internal_error
from evalcore.evaluations.schemas import AthleteSnapshot, OtpVerification

OTP_MIN = 100000
OTP_MAX = 999999

_INVALID = Err(code=ErrorCode.OTP_INVALID, message="Invalid or expired pairing code.")


def mask_otp(code: int | str, visible_digits: int | None = None) -> str:
    """Mask a code for logs and snapshots, e.g. ``***1234``."""
    text = str(code)
    visible = settings.otp_mask_visible_digits if visible_digits is None else visible_digits
    if len(text) <= visible or visible == 0:
        return "*" * len(text)
    return f"***{text[-visible:]}"


def _parse_code(submitted_code: int | str) -> int | None:
    if isinstance(submitted_code, bool):
        return None
    if isinstance(submitted_code, int):
        code = submitted_code
    else:
        text = str(submitted_code).strip()
        if len(text) != 6 or not text.isdigit():
            return None
        code = int(text)
    if code < OTP_MIN or code > OTP_MAX:
        return None
    return code


class OTPAuthority:
    """Issue and verify pairing codes."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def generate() -> int:
        """Draw a code uniformly from [100000, 999999] using the OS CSPRNG."""
        return OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1)

    def _find_accepted(self, guide_id: str, code: int) -> EvaluationRequest | None:
        matches = list(
            self.session.scalars(
                select(EvaluationRequest).where(
                    EvaluationRequest.guide_id == guide_id,
                    EvaluationRequest.otp == code,
                    EvaluationRequest.status == RequestStatus.ACCEPTED.value,
                )
            ).all()
        )
        if len(matches) > 1:
            raise OtpIntegrityError(guide_id, len(matches))
        return matches[0] if matches else None

    def verify(self, guide_id: str, submitted_code: int | str) -> Result[OtpVerification]:
        """Verify a pairing code for a guide.

        Only ACCEPTED requests owned by the guide are considered. A code that
        is malformed, unknown, belongs to another guide, or belonged to a
        rejected or finalized request all yield the same OTP_INVALID.

        Args:
            guide_id: Guide profile id of the verifying caller
            submitted_code: Code as typed by the guide

        Returns:
            Ok(OtpVerification) or Err(OTP_INVALID | INTERNAL_ERROR)
        """
        code = _parse_code(submitted_code)
        if code is None:
            logger.info("[OTP] Verification failed: malformed code", guide_id=guide_id)
            return _INVALID

        try:
            request = self._find_accepted(guide_id, code)
        except OtpIntegrityError as e:
            logger.error(
                f"[OTP] Data-integrity fault: {e.match_count} accepted requests share code {mask_otp(code)}",
                guide_id=guide_id,
            )
            return internal_error("OTP_VERIFY", "Pairing code could not be resolved uniquely.")

        if request is None:
            logger.info(f"[OTP] Verification failed for code {mask_otp(code)}", guide_id=guide_id)
            return _INVALID

        athlete = self.session.get(Athlete, request.athlete_id)
        if athlete is None:
            logger.error("[OTP] Accepted request references a missing athlete", request_id=request.id)
            return internal_error("OTP_VERIFY", "Paired athlete not found.")

        logger.info(f"[OTP] Code {mask_otp(code)} verified", guide_id=guide_id, request_id=request.id)
        return Ok(
            OtpVerification(
                athlete=AthleteSnapshot.from_model(athlete),
                guide_id=guide_id,
                request_id=request.id,
                scheduled_date=request.scheduled_date,
                scheduled_time=request.scheduled_time,
                verified_at=datetime.now(timezone.utc),
                otp_masked=mask_otp(code),
            )
        )
