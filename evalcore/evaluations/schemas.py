"""Typed records crossing the evaluation service boundary."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from evalcore.db.models import Athlete, EvaluationRequest, RequestStatus


class ProfileRole(StrEnum):
    ATHLETE = "athlete"
    GUIDE = "guide"


class CallerProfile(BaseModel):
    """Resolved identity of an authenticated caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: ProfileRole
    user_id: str


class AthleteSnapshot(BaseModel):
    """Read-only copy of the paired athlete's identity fields."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None
    primary_sport: str | None = None
    rank: str
    athlete_class: str
    city: str | None = None
    state: str | None = None
    country: str | None = None

    @classmethod
    def from_model(cls, athlete: Athlete) -> AthleteSnapshot:
        return cls(
            id=athlete.id,
            user_id=athlete.user_id,
            username=athlete.username,
            first_name=athlete.first_name,
            last_name=athlete.last_name,
            gender=athlete.gender,
            primary_sport=athlete.primary_sport,
            rank=athlete.rank,
            athlete_class=athlete.athlete_class,
            city=athlete.city,
            state=athlete.state,
            country=athlete.country,
        )

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.username or self.id


class ScheduleInput(BaseModel):
    """Guide's scheduling commitment when accepting a request.

    date, time and location are optional at the type level so the service
    can report every missing field at once as a VALIDATION_ERROR.
    Equipment accepts a list or a comma-separated string.
    """

    date: dt.date | None = None
    time: str | None = None
    location: str | None = None
    equipment: list[str] = Field(default_factory=list)
    message: str | None = None

    @field_validator("equipment", mode="before")
    @classmethod
    def parse_equipment(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(item).strip() for item in value if str(item).strip()]

    @field_validator("time", "location", "message")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()

    def missing_fields(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        if self.date is None:
            errors["date"] = ["Scheduled date is required."]
        if not self.time:
            errors["time"] = ["Scheduled time is required."]
        if not self.location:
            errors["location"] = ["Location is required."]
        return errors


class AthleteSummary(BaseModel):
    id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    rank: str
    athlete_class: str
    city: str | None = None
    state: str | None = None
    country: str | None = None


class EvaluationRequestView(BaseModel):
    """Detached view of an EvaluationRequest row."""

    id: str
    athlete_id: str
    guide_id: str
    status: RequestStatus
    message: str | None = None
    message_from_guide: str | None = None
    scheduled_date: date | None = None
    scheduled_time: str | None = None
    location: str | None = None
    equipment: list[str] = Field(default_factory=list)
    otp: int | None = None
    created_at: datetime
    athlete: AthleteSummary | None = None

    @classmethod
    def from_model(cls, request: EvaluationRequest, athlete: Athlete | None = None) -> EvaluationRequestView:
        summary = None
        if athlete is not None:
            summary = AthleteSummary(
                id=athlete.id,
                username=athlete.username,
                first_name=athlete.first_name,
                last_name=athlete.last_name,
                rank=athlete.rank,
                athlete_class=athlete.athlete_class,
                city=athlete.city,
                state=athlete.state,
                country=athlete.country,
            )
        return cls(
            id=request.id,
            athlete_id=request.athlete_id,
            guide_id=request.guide_id,
            status=RequestStatus(request.status),
            message=request.message,
            message_from_guide=request.message_from_guide,
            scheduled_date=request.scheduled_date,
            scheduled_time=request.scheduled_time,
            location=request.location,
            equipment=list(request.equipment or []),
            otp=request.otp,
            created_at=request.created_at,
            athlete=summary,
        )


class OtpVerification(BaseModel):
    """Successful OTP verification: the paired athlete and the accepted request."""

    model_config = ConfigDict(frozen=True)

    athlete: AthleteSnapshot
    guide_id: str
    request_id: str
    scheduled_date: date | None = None
    scheduled_time: str | None = None
    verified_at: datetime
    otp_masked: str
