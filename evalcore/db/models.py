from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import StrEnum

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class RequestStatus(StrEnum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class GuideStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"


class Athlete(Base):
    """Athlete identity record.

    user_id is the already-authenticated caller id issued by the external
    auth provider. Only identity fields live here; physical stats are stored
    as EvaluationRecord rows.
    """

    __tablename__ = "athletes"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    username: Mapped[str | None] = mapped_column(String, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    primary_sport: Mapped[str | None] = mapped_column(String, nullable=True)
    rank: Mapped[str] = mapped_column(String, nullable=False, default="unranked")
    athlete_class: Mapped[str] = mapped_column(String, nullable=False, default="open")
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Guide(Base):
    """Guide (evaluator) record.

    A guide may also own an athlete profile (athlete_id); notifications
    addressed to the guide use the guide id as recipient.
    """

    __tablename__ = "guides"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    athlete_id: Mapped[str | None] = mapped_column(String, ForeignKey("athletes.id"), nullable=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    status: Mapped[str] = mapped_column(String, nullable=False, default=GuideStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class EvaluationRequest(Base):
    """Physical evaluation request raised by an athlete towards a guide.

    Schema:
    - status: PENDING -> ACCEPTED | REJECTED, exactly once
    - otp: six-digit pairing code, set iff status is ACCEPTED
    - equipment: ordered list of equipment names the athlete should bring

    REJECTED rows are deleted in the same transaction that notifies the
    athlete. ACCEPTED rows are deleted when the evaluation record is written.
    """

    __tablename__ = "physical_evaluation_requests"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    athlete_id: Mapped[str] = mapped_column(String, ForeignKey("athletes.id"), nullable=False, index=True)
    guide_id: Mapped[str] = mapped_column(String, ForeignKey("guides.id"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default=RequestStatus.PENDING.value)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    message_from_guide: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    scheduled_time: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    equipment: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    otp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_eval_requests_guide_otp_status", "guide_id", "otp", "status"),
        Index("idx_eval_requests_athlete_guide", "athlete_id", "guide_id"),
    )


class Notification(Base):
    """Notification record written for the delivery collaborator to pick up."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    recipient_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    actor_id: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class EvaluationRecord(Base):
    """Finalized, scored physical evaluation.

    Raw inputs are stored per category exactly as collected (each battery
    with its inputs and calculated sub-object); derived_scores holds the
    category aggregates. Rows are write-once.
    """

    __tablename__ = "evaluation_records"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    athlete_id: Mapped[str] = mapped_column(String, ForeignKey("athletes.id"), nullable=False, index=True)
    guide_id: Mapped[str] = mapped_column(String, ForeignKey("guides.id"), nullable=False, index=True)
    evaluator_id: Mapped[str] = mapped_column(String, nullable=False)
    request_id: Mapped[str | None] = mapped_column(String, nullable=True)
    evaluated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    basic_measurements: Mapped[dict] = mapped_column(JSON, nullable=False)
    strength_and_power: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    speed_and_agility: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    stamina_and_recovery: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    derived_scores: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class ImmutableRecordError(RuntimeError):
    """Raised when code attempts to modify a written EvaluationRecord."""


@event.listens_for(EvaluationRecord, "before_update")
def _refuse_record_update(mapper, connection, target: EvaluationRecord) -> None:
    raise ImmutableRecordError(f"EvaluationRecord {target.id} is immutable once written")
