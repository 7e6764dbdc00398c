"""Persist finalized evaluations.

Finalizing writes the immutable EvaluationRecord, notifies the athlete and
removes the ACCEPTED request in one transaction. Removing the request also
retires its pairing code. The wizard session and its draft are cleared only
after the transaction commits.
"""

from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.orm import Session

from evalcore.db.models import EvaluationRecord, EvaluationRequest, RequestStatus
from evalcore.db.session import atomic
from evalcore.evaluations.errors import Err, ErrorCode, Ok, Result, internal_error
from evalcore.evaluations.notifications import DbNotificationSink, NotificationSink, NotificationType
from evalcore.stats.wizard import StatsWizardEngine


class EvaluationRecordStore:
    def __init__(self, session: Session, *, notifier: NotificationSink | None = None):
        self.session = session
        self.notifier = notifier or DbNotificationSink(session)

    def finalize(self, engine: StatsWizardEngine, evaluator_id: str) -> Result[EvaluationRecord]:
        """Persist the wizard's evaluation.

        Args:
            engine: Wizard holding the completed session
            evaluator_id: Id of the person who ran the evaluation

        Returns:
            Ok(EvaluationRecord) or
            Err(MISSING_MANDATORY_BATTERY | NOT_FOUND | INTERNAL_ERROR)
        """
        built = engine.build_payload()
        if isinstance(built, Err):
            if built.code == ErrorCode.MISSING_MANDATORY_BATTERY:
                logger.warning("[RECORD_STORE] Submission rejected: basic measurements missing", evaluator_id=evaluator_id)
            return built
        payload = built.value

        request = self.session.get(EvaluationRequest, payload.request_id)
        if (
            request is None
            or request.status != RequestStatus.ACCEPTED.value
            or request.guide_id != payload.guide_id
            or request.athlete_id != payload.athlete_id
        ):
            logger.warning(
                "[RECORD_STORE] No accepted request backs this evaluation",
                request_id=payload.request_id,
                guide_id=payload.guide_id,
            )
            return Err(code=ErrorCode.NOT_FOUND, message="Accepted evaluation request not found.")

        try:
            with atomic(self.session):
                record = EvaluationRecord(
                    athlete_id=payload.athlete_id,
                    guide_id=payload.guide_id,
                    evaluator_id=evaluator_id,
                    request_id=payload.request_id,
                    evaluated_at=datetime.now(timezone.utc),
                    basic_measurements=payload.basic_measurements.model_dump(mode="json"),
                    strength_and_power=_dump_batteries(payload.strength_and_power),
                    speed_and_agility=_dump_batteries(payload.speed_and_agility),
                    stamina_and_recovery=_dump_batteries(payload.stamina_and_recovery),
                    derived_scores=payload.derived_scores.model_dump(mode="json"),
                )
                self.session.add(record)
                self.session.flush()
                self.notifier.notify(
                    payload.athlete_id,
                    NotificationType.EVALUATION_COMPLETED,
                    "Physical evaluation completed",
                    "Your physical evaluation results are now available.",
                    {"record_id": record.id, "request_id": payload.request_id, "overall_score": payload.derived_scores.overall},
                    actor_id=payload.guide_id,
                )
                self.session.delete(request)
        except Exception:
            logger.exception("[RECORD_STORE] finalize failed", request_id=payload.request_id)
            self.session.rollback()
            return internal_error("EVALUATION_FINALIZE", "Failed to save evaluation.")

        engine.clear_draft()
        logger.info(
            "[RECORD_STORE] Evaluation finalized",
            record_id=record.id,
            athlete_id=payload.athlete_id,
            guide_id=payload.guide_id,
        )
        return Ok(record)


def _dump_batteries(batteries: dict) -> dict:
    return {str(name): battery.model_dump(mode="json") for name, battery in batteries.items()}
