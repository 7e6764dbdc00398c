"""Evaluation request lifecycle.

PENDING -> ACCEPTED (schedule + pairing code) or PENDING -> REJECTED (deleted).
Each transition runs in a single transaction together with the
notifications that describe it, so a failure leaves the request PENDING
and a retried call against a processed request fails with STATUS_CONFLICT.
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from evalcore.config.settings import settings
from evalcore.db.models import Athlete, EvaluationRequest, Guide, GuideStatus, RequestStatus
from evalcore.db.session import atomic, transactionally
from evalcore.evaluations.errors import Err, ErrorCode, Ok, Result, internal_error
from evalcore.evaluations.notifications import DbNotificationSink, NotificationSink, NotificationType
from evalcore.evaluations.otp import OTPAuthority, mask_otp
from evalcore.evaluations.schemas import CallerProfile, EvaluationRequestView, ProfileRole, ScheduleInput


def _not_found(request_id: str) -> Err:
    return Err(code=ErrorCode.NOT_FOUND, message=f"Evaluation request {request_id} not found")


def _forbidden(message: str = "Request does not belong to this guide") -> Err:
    return Err(code=ErrorCode.FORBIDDEN, message=message)


def _already_processed(request: EvaluationRequest) -> Err:
    return Err(
        code=ErrorCode.STATUS_CONFLICT,
        message=f"Evaluation request {request.id} was already processed (status={request.status})",
    )


class EvaluationRequestService:
    """Create, accept and reject physical evaluation requests.

    One instance per unit of work; the notification sink and OTP authority
    default to implementations bound to the same session.
    """

    def __init__(
        self,
        session: Session,
        *,
        notifier: NotificationSink | None = None,
        otp_authority: OTPAuthority | None = None,
    ):
        self.session = session
        self.notifier = notifier or DbNotificationSink(session)
        self.otp_authority = otp_authority or OTPAuthority(session)

    def _load_for_guide(self, request_id: str, caller: CallerProfile) -> EvaluationRequest | Err:
        """Load a PENDING request owned by the calling guide."""
        if caller.role != ProfileRole.GUIDE:
            return _forbidden("Only guides can process evaluation requests")

        request = self.session.get(EvaluationRequest, request_id)
        if request is None:
            return _not_found(request_id)
        if request.guide_id != caller.id:
            logger.warning(
                "[REQUEST_SERVICE] Guide mismatch",
                request_id=request_id,
                guide_id=caller.id,
                request_guide_id=request.guide_id,
            )
            return _forbidden()
        if request.status != RequestStatus.PENDING.value:
            return _already_processed(request)
        return request

    def create_request(self, caller: CallerProfile, guide_id: str, message: str | None = None) -> Result[EvaluationRequestView]:
        """Raise a new PENDING request from an athlete to a guide.

        Only one request may exist per athlete/guide pair at a time.

        Args:
            caller: Athlete profile of the requester
            guide_id: Target guide id
            message: Optional note for the guide

        Returns:
            Ok(EvaluationRequestView) or Err(FORBIDDEN | NOT_FOUND | STATUS_CONFLICT | INTERNAL_ERROR)
        """
        if caller.role != ProfileRole.ATHLETE:
            return _forbidden("Only athletes can request an evaluation")

        try:
            athlete = self.session.get(Athlete, caller.id)
            guide = self.session.get(Guide, guide_id)
            if athlete is None:
                return Err(code=ErrorCode.NOT_FOUND, message="Athlete profile not found")
            if guide is None:
                return Err(code=ErrorCode.NOT_FOUND, message=f"Guide {guide_id} not found")
            if settings.require_approved_guide and guide.status != GuideStatus.APPROVED.value:
                return _forbidden("Guide is not accepting evaluation requests")

            existing = self.session.scalars(
                select(EvaluationRequest).where(
                    EvaluationRequest.athlete_id == athlete.id,
                    EvaluationRequest.guide_id == guide.id,
                )
            ).first()
            if existing is not None:
                return Err(
                    code=ErrorCode.STATUS_CONFLICT,
                    message="An evaluation request for this guide already exists",
                )

            with atomic(self.session):
                request = EvaluationRequest(
                    athlete_id=athlete.id,
                    guide_id=guide.id,
                    status=RequestStatus.PENDING.value,
                    message=message,
                    equipment=[],
                )
                self.session.add(request)
                self.session.flush()
                snapshot_name = " ".join(part for part in (athlete.first_name, athlete.last_name) if part)
                self.notifier.notify(
                    guide.id,
                    NotificationType.EVALUATION_REQUESTED,
                    "New physical evaluation request",
                    f"{snapshot_name or athlete.username or 'An athlete'} requested a physical evaluation.",
                    {"request_id": request.id, "athlete_id": athlete.id},
                    actor_id=athlete.id,
                )
        except Exception:
            logger.exception("[REQUEST_SERVICE] create_request failed", athlete_id=caller.id, guide_id=guide_id)
            self.session.rollback()
            return internal_error("REQUEST_CREATE", "Failed to create request.")

        logger.info("[REQUEST_SERVICE] Evaluation request created", request_id=request.id, guide_id=guide_id)
        return Ok(EvaluationRequestView.from_model(request))

    def accept_request(self, request_id: str, caller: CallerProfile, schedule: ScheduleInput) -> Result[EvaluationRequestView]:
        """Accept a PENDING request, committing to a schedule and issuing a pairing code.

        Status change, code, schedule fields and both notifications (athlete:
        schedule + code, guide: confirmation) are written in one transaction.

        Args:
            request_id: Request to accept
            caller: Guide profile of the caller
            schedule: Date, time and location are required

        Returns:
            Ok(EvaluationRequestView) or
            Err(NOT_FOUND | FORBIDDEN | STATUS_CONFLICT | VALIDATION_ERROR | INTERNAL_ERROR)
        """
        try:
            loaded = self._load_for_guide(request_id, caller)
            if isinstance(loaded, Err):
                return loaded
            request = loaded

            missing = schedule.missing_fields()
            if missing:
                logger.warning("[REQUEST_SERVICE] Missing scheduling fields on accept", request_id=request_id, fields=sorted(missing))
                return Err(
                    code=ErrorCode.VALIDATION_ERROR,
                    message="Missing required scheduling fields.",
                    field_errors=missing,
                )

            with atomic(self.session):
                otp = self.otp_authority.generate()
                request.status = RequestStatus.ACCEPTED.value
                request.otp = otp
                request.scheduled_date = schedule.date
                request.scheduled_time = schedule.time
                request.location = schedule.location
                request.equipment = list(schedule.equipment)
                request.message_from_guide = schedule.message or None

                schedule_payload = {
                    "request_id": request.id,
                    "guide_id": request.guide_id,
                    "scheduled_date": schedule.date.isoformat() if schedule.date else None,
                    "scheduled_time": schedule.time,
                    "location": schedule.location,
                    "equipment": list(schedule.equipment),
                }
                self.notifier.notify(
                    request.athlete_id,
                    NotificationType.EVALUATION_ACCEPTED,
                    "Physical evaluation request accepted",
                    "Your physical evaluation request was accepted. Check details for schedule and location.",
                    {**schedule_payload, "otp": otp},
                    actor_id=request.guide_id,
                )
                self.notifier.notify(
                    request.guide_id,
                    NotificationType.EVALUATION_SCHEDULED,
                    "Evaluation scheduled",
                    "You accepted a physical evaluation request. The athlete has been notified.",
                    {"request_id": request.id, "athlete_id": request.athlete_id, "otp": otp},
                    actor_id=request.guide_id,
                )
                self.session.flush()
        except Exception:
            logger.exception("[REQUEST_SERVICE] accept_request failed", request_id=request_id)
            self.session.rollback()
            return internal_error("REQUEST_ACCEPT", "Failed to update request.")

        logger.info(
            f"[REQUEST_SERVICE] Request accepted, code {mask_otp(otp)} issued",
            request_id=request_id,
            guide_id=caller.id,
        )
        return Ok(EvaluationRequestView.from_model(request))

    def reject_request(self, request_id: str, caller: CallerProfile) -> Result[str]:
        """Reject a PENDING request, notify the athlete and delete the row.

        The status change, notification and deletion commit together.

        Returns:
            Ok(request_id) or Err(NOT_FOUND | FORBIDDEN | STATUS_CONFLICT | INTERNAL_ERROR)
        """
        try:
            loaded = self._load_for_guide(request_id, caller)
            if isinstance(loaded, Err):
                return loaded
            request = loaded

            def _mark_rejected(session: Session) -> None:
                request.status = RequestStatus.REJECTED.value
                request.otp = None
                session.flush()

            def _notify_athlete(session: Session) -> None:
                self.notifier.notify(
                    request.athlete_id,
                    NotificationType.EVALUATION_REJECTED,
                    "Physical evaluation request rejected",
                    "Your physical evaluation request was rejected by the guide.",
                    {"request_id": request.id, "guide_id": request.guide_id},
                    actor_id=request.guide_id,
                )

            def _delete(session: Session) -> None:
                session.delete(request)

            transactionally(self.session, [_mark_rejected, _notify_athlete, _delete])
        except Exception:
            logger.exception("[REQUEST_SERVICE] reject_request failed", request_id=request_id)
            self.session.rollback()
            return internal_error("REQUEST_REJECT", "Failed to update request.")

        logger.info("[REQUEST_SERVICE] Request rejected and removed", request_id=request_id, guide_id=caller.id)
        return Ok(request_id)

    def get_request(self, request_id: str, caller: CallerProfile) -> Result[EvaluationRequestView]:
        """Look up a request visible to its athlete or its guide."""
        request = self.session.get(EvaluationRequest, request_id)
        if request is None:
            return _not_found(request_id)
        owner_id = request.guide_id if caller.role == ProfileRole.GUIDE else request.athlete_id
        if owner_id != caller.id:
            return _forbidden("Request is not visible to this caller")
        return Ok(EvaluationRequestView.from_model(request))

    def list_guide_requests(self, caller: CallerProfile) -> Result[list[EvaluationRequestView]]:
        """List the calling guide's requests, newest first, with athlete summaries."""
        if caller.role != ProfileRole.GUIDE:
            return _forbidden("Only guides have an evaluation inbox")

        rows = self.session.execute(
            select(EvaluationRequest, Athlete)
            .join(Athlete, Athlete.id == EvaluationRequest.athlete_id)
            .where(EvaluationRequest.guide_id == caller.id)
            .order_by(EvaluationRequest.created_at.desc(), EvaluationRequest.id)
        ).all()
        return Ok([EvaluationRequestView.from_model(request, athlete) for request, athlete in rows])
