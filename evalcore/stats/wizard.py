"""Stats wizard: step-sequenced data collection for one in-person evaluation.

A WizardSession is an explicit per-evaluation object owned by the guide
conducting the evaluation. StatsWizardEngine wraps it with the navigation
gates, battery updates, derived-score refresh and draft persistence.

Gating rules:
- Instruction steps are always passable.
- Form steps need the presentation layer's validity flag
  (on_validation_change) AND an explicit mark_step_complete, whose gate is
  Basic Measurements present for the basic step and at least one completed
  battery for each category step.
- go_to_step only reaches steps already visited or completed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from evalcore.evaluations.errors import Err, ErrorCode, Ok, Result, internal_error
from evalcore.evaluations.schemas import AthleteSnapshot, OtpVerification
from evalcore.stats.base import BatteryBase, BatteryName, Category
from evalcore.stats.batteries import (
    BATTERY_TYPES,
    BasicMeasurements,
    SpeedBattery,
    StaminaBattery,
    StrengthBattery,
    battery_category,
    parse_battery,
)
from evalcore.stats.calculations import Gender
from evalcore.stats.drafts import DraftStore, JsonFileDraftStore
from evalcore.stats.scores import DerivedScores, derive_scores


class StepKind(StrEnum):
    INSTRUCTION = "instruction"
    FORM = "form"


@dataclass(frozen=True)
class WizardStep:
    id: int
    title: str
    kind: StepKind
    category: Category | None = None


WIZARD_STEPS: tuple[WizardStep, ...] = (
    WizardStep(1, "Basic Measurements Instructions", StepKind.INSTRUCTION),
    WizardStep(2, "Basic Physical Measurements", StepKind.FORM, Category.BASIC_MEASUREMENTS),
    WizardStep(3, "Strength & Power Instructions", StepKind.INSTRUCTION),
    WizardStep(4, "Strength & Power Assessment", StepKind.FORM, Category.STRENGTH_AND_POWER),
    WizardStep(5, "Speed & Agility Instructions", StepKind.INSTRUCTION),
    WizardStep(6, "Speed & Agility Assessment", StepKind.FORM, Category.SPEED_AND_AGILITY),
    WizardStep(7, "Stamina & Recovery Instructions", StepKind.INSTRUCTION),
    WizardStep(8, "Stamina & Recovery Assessment", StepKind.FORM, Category.STAMINA_AND_RECOVERY),
    WizardStep(9, "Review & Submit", StepKind.INSTRUCTION),
)

TOTAL_STEPS = len(WIZARD_STEPS)
STEPS_BY_ID = {step.id: step for step in WIZARD_STEPS}
FORM_STEP_IDS = frozenset(step.id for step in WIZARD_STEPS if step.kind == StepKind.FORM)

_NO_SESSION = Err(code=ErrorCode.NOT_FOUND, message="No active evaluation session.")


class EvaluationMeta(BaseModel):
    request_id: str
    scheduled_date: date | None = None
    scheduled_time: str | None = None
    evaluation_date: date = Field(default_factory=lambda: datetime.now(timezone.utc).date())
    otp_verified_at: datetime | None = None
    otp_masked: str | None = None


class WizardSession(BaseModel):
    athlete: AthleteSnapshot
    guide_id: str
    evaluation: EvaluationMeta
    current_step: int = 1
    completed_steps: set[int] = Field(default_factory=set)
    visited_steps: set[int] = Field(default_factory=lambda: {1})
    step_validity: dict[int, bool] = Field(default_factory=dict)
    basic_measurements: BasicMeasurements | None = None
    strength_and_power: dict[BatteryName, StrengthBattery] = Field(default_factory=dict)
    speed_and_agility: dict[BatteryName, SpeedBattery] = Field(default_factory=dict)
    stamina_and_recovery: dict[BatteryName, StaminaBattery] = Field(default_factory=dict)
    derived_scores: DerivedScores = Field(default_factory=DerivedScores)
    draft_saved_at: datetime | None = None

    def batteries(self, category: Category) -> dict[BatteryName, BatteryBase]:
        if category == Category.STRENGTH_AND_POWER:
            return self.strength_and_power
        if category == Category.SPEED_AND_AGILITY:
            return self.speed_and_agility
        if category == Category.STAMINA_AND_RECOVERY:
            return self.stamina_and_recovery
        raise ValueError(f"{category} has no battery map")


class DraftSaved(BaseModel):
    saved_at: datetime
    progress: int


class EvaluationPayload(BaseModel):
    """Final submission handed to the record store."""

    athlete_id: str
    guide_id: str
    request_id: str
    evaluation_date: date
    basic_measurements: BasicMeasurements
    strength_and_power: dict[BatteryName, StrengthBattery]
    speed_and_agility: dict[BatteryName, SpeedBattery]
    stamina_and_recovery: dict[BatteryName, StaminaBattery]
    derived_scores: DerivedScores


def _validation_err(message: str, field_errors: dict[str, list[str]] | None = None) -> Err:
    return Err(code=ErrorCode.VALIDATION_ERROR, message=message, field_errors=field_errors or {})


def _athlete_gender(value: str | None) -> Gender | None:
    if not value:
        return None
    try:
        return Gender(value.upper())
    except ValueError:
        return Gender.OTHER


def _field_errors(error: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for item in error.errors():
        key = ".".join(str(part) for part in item["loc"]) or "__root__"
        errors.setdefault(key, []).append(item["msg"])
    return errors


class StatsWizardEngine:
    """Drives a single WizardSession.

    The engine is single-owner, in-process state: one instance per active
    evaluation, never shared between guides.
    """

    def __init__(self, draft_store: DraftStore | None = None):
        self.draft_store = draft_store or JsonFileDraftStore()
        self.session: WizardSession | None = None

    @classmethod
    def open_session(
        cls,
        verification: OtpVerification,
        draft_store: DraftStore | None = None,
        *,
        resume: bool = True,
    ) -> StatsWizardEngine:
        """Start (or resume) the wizard after a successful OTP verification.

        A stored draft is resumed only when it belongs to the same request;
        drafts from an earlier request for the same pair are dropped.
        """
        engine = cls(draft_store)
        meta = EvaluationMeta(
            request_id=verification.request_id,
            scheduled_date=verification.scheduled_date,
            scheduled_time=verification.scheduled_time,
            otp_verified_at=verification.verified_at,
            otp_masked=verification.otp_masked,
        )
        if resume:
            loaded = engine.load_draft(verification.guide_id, verification.athlete.id)
            if loaded.ok and loaded.value is not None:
                if loaded.value.evaluation.request_id == verification.request_id:
                    engine.session.evaluation.otp_verified_at = verification.verified_at
                    return engine
                logger.info(
                    "[WIZARD] Dropping draft from a previous request",
                    guide_id=verification.guide_id,
                    athlete_id=verification.athlete.id,
                )
                engine.draft_store.delete(verification.guide_id, verification.athlete.id)

        engine.initialize(verification.athlete, verification.guide_id, meta)
        return engine

    def initialize(self, athlete: AthleteSnapshot, guide_id: str, evaluation_meta: EvaluationMeta) -> WizardSession:
        """Reset to step 1 with no data; only the landing step counts as visited."""
        self.session = WizardSession(athlete=athlete, guide_id=guide_id, evaluation=evaluation_meta)
        logger.info(
            "[WIZARD] Session initialized",
            guide_id=guide_id,
            athlete_id=athlete.id,
            request_id=evaluation_meta.request_id,
        )
        return self.session

    # ============================================
    # Navigation
    # ============================================

    @property
    def current_step(self) -> WizardStep | None:
        if self.session is None:
            return None
        return STEPS_BY_ID[self.session.current_step]

    def go_to_step(self, step_id: int) -> Result[int]:
        """Jump to a step already visited or completed; forward jumps are refused."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        reachable = s.visited_steps | s.completed_steps | {s.current_step}
        if step_id not in STEPS_BY_ID or step_id not in reachable:
            logger.debug(f"[WIZARD] Refused navigation to step {step_id}", current_step=s.current_step)
            return _validation_err(f"Step {step_id} is not reachable yet.")
        s.current_step = step_id
        return Ok(step_id)

    def can_proceed(self) -> bool:
        """Whether next_step would currently succeed."""
        if self.session is None:
            return False
        return self._forward_gate(self.session.current_step) is None

    def _forward_gate(self, step_id: int) -> Err | None:
        step = STEPS_BY_ID[step_id]
        if step.kind == StepKind.INSTRUCTION:
            return None
        s = self.session
        if not s.step_validity.get(step_id, False):
            return _validation_err(f"Step {step_id} has invalid or incomplete input.")
        if step_id not in s.completed_steps:
            return _validation_err(f"Step {step_id} must be marked complete before continuing.")
        return self._completion_gate(step)

    def next_step(self) -> Result[int]:
        """Advance one step, subject to the current step's gate.

        On success the step being left joins completed and visited, and the
        landing step is recorded as visited. At the final step this is a no-op.
        """
        if self.session is None:
            return _NO_SESSION
        s = self.session
        gate = self._forward_gate(s.current_step)
        if gate is not None:
            return gate
        if s.current_step >= TOTAL_STEPS:
            logger.debug("[WIZARD] Already at final step")
            return Ok(s.current_step)

        leaving = s.current_step
        s.completed_steps.add(leaving)
        s.visited_steps.add(leaving)
        s.current_step = leaving + 1
        s.visited_steps.add(s.current_step)
        logger.debug(f"[WIZARD] Step {leaving} -> {s.current_step}", guide_id=s.guide_id)
        return Ok(s.current_step)

    def prev_step(self) -> Result[int]:
        """Go back one step without validation; bounded at step 1."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        if s.current_step > 1:
            s.current_step -= 1
        return Ok(s.current_step)

    def on_validation_change(self, valid: bool) -> None:
        """Presentation-layer signal for the current form step."""
        if self.session is None:
            return
        if self.session.current_step in FORM_STEP_IDS:
            self.session.step_validity[self.session.current_step] = bool(valid)

    # ============================================
    # Completion
    # ============================================

    def _completion_gate(self, step: WizardStep) -> Err | None:
        s = self.session
        if step.category == Category.BASIC_MEASUREMENTS:
            if s.basic_measurements is None or not s.basic_measurements.is_complete:
                return Err(
                    code=ErrorCode.MISSING_MANDATORY_BATTERY,
                    message="Basic measurements (height and weight) are required.",
                )
            return None
        completed = [b for b in s.batteries(step.category).values() if b.is_complete]
        if not completed:
            return _validation_err(f"Complete at least one {step.category.value.replace('_', ' ')} battery.")
        return None

    def mark_step_complete(self, step_id: int) -> Result[int]:
        """Record a form step as complete once its category gate passes."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        step = STEPS_BY_ID.get(step_id)
        if step is None or step.kind != StepKind.FORM:
            return _validation_err(f"Step {step_id} is not a form step.")
        if step_id not in s.visited_steps and step_id != s.current_step:
            return _validation_err(f"Step {step_id} has not been reached yet.")
        gate = self._completion_gate(step)
        if gate is not None:
            return gate
        s.completed_steps.add(step_id)
        s.visited_steps.add(step_id)
        logger.info(f"[WIZARD] Step {step_id} marked complete", guide_id=s.guide_id, athlete_id=s.athlete.id)
        return Ok(step_id)

    # ============================================
    # Data entry
    # ============================================

    def _refresh_scores(self) -> None:
        s = self.session
        s.derived_scores = derive_scores(
            s.basic_measurements,
            s.strength_and_power.values(),
            s.speed_and_agility.values(),
            s.stamina_and_recovery.values(),
        )

    def update_basic_measurements(self, data: dict[str, Any]) -> Result[BasicMeasurements]:
        """Merge raw basic measurements into the session and recompute BMI."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        merged = s.basic_measurements.model_dump(exclude={"calculated"}) if s.basic_measurements else {}
        merged.update(data)
        try:
            measurements = parse_battery(BatteryName.BASIC_MEASUREMENTS, merged)
        except ValidationError as e:
            return _validation_err("Invalid basic measurements.", _field_errors(e))
        s.basic_measurements = measurements
        self._refresh_scores()
        return Ok(measurements)

    def update_battery(self, category: Category | str, name: BatteryName | str, data: dict[str, Any] | BatteryBase) -> Result[BatteryBase]:
        """Assign a battery's inputs and its calculated results.

        Never marks a step complete. A battery outside ``category`` or data
        that does not fit the battery's inputs is a VALIDATION_ERROR.
        """
        if self.session is None:
            return _NO_SESSION
        try:
            category = Category(category)
            battery_name = BatteryName(name)
        except ValueError:
            return _validation_err(f"Unknown battery {name!r} or category {category!r}.")

        if category == Category.BASIC_MEASUREMENTS and battery_name == BatteryName.BASIC_MEASUREMENTS:
            payload = data.model_dump(exclude={"calculated"}) if isinstance(data, BatteryBase) else data
            return self.update_basic_measurements(payload)
        if battery_category(battery_name) != category:
            return _validation_err(f"{battery_name} is not a {category} battery.")

        if isinstance(data, dict) and "gender" in BATTERY_TYPES[battery_name].model_fields and data.get("gender") is None:
            data = {**data, "gender": _athlete_gender(self.session.athlete.gender)}

        try:
            battery = parse_battery(battery_name, data)
        except ValidationError as e:
            return _validation_err(f"Invalid {battery_name} data.", _field_errors(e))
        except ValueError as e:
            return _validation_err(str(e))

        self.session.batteries(category)[battery_name] = battery
        self._refresh_scores()
        logger.debug(f"[WIZARD] Updated {battery_name}", complete=battery.is_complete)
        return Ok(battery)

    def remove_battery(self, category: Category | str, name: BatteryName | str) -> Result[BatteryName]:
        if self.session is None:
            return _NO_SESSION
        try:
            category = Category(category)
            battery_name = BatteryName(name)
            batteries = self.session.batteries(category)
        except ValueError:
            return _validation_err(f"Unknown battery {name!r} or category {category!r}.")
        if batteries.pop(battery_name, None) is None:
            return Err(code=ErrorCode.NOT_FOUND, message=f"{battery_name} has not been recorded.")
        self._refresh_scores()
        return Ok(battery_name)

    # ============================================
    # Progress and drafts
    # ============================================

    def get_progress_percentage(self) -> int:
        if self.session is None:
            return 0
        done = len(self.session.completed_steps & FORM_STEP_IDS)
        return round(100 * done / len(FORM_STEP_IDS))

    def save_draft(self) -> Result[DraftSaved]:
        """Synchronously snapshot the whole session to the draft store."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        saved_at = datetime.now(timezone.utc)
        snapshot = s.model_copy(update={"draft_saved_at": saved_at}).model_dump(mode="json")
        try:
            self.draft_store.save(s.guide_id, s.athlete.id, snapshot)
        except OSError:
            logger.exception("[WIZARD] Draft save failed", guide_id=s.guide_id, athlete_id=s.athlete.id)
            return internal_error("DRAFT_SAVE", "Failed to save draft.")
        s.draft_saved_at = saved_at
        progress = self.get_progress_percentage()
        logger.info(f"[WIZARD] Draft saved ({progress}%)", guide_id=s.guide_id, athlete_id=s.athlete.id)
        return Ok(DraftSaved(saved_at=saved_at, progress=progress))

    def load_draft(self, guide_id: str, athlete_id: str) -> Result[WizardSession | None]:
        """Restore a stored draft into the engine; Ok(None) when there is none."""
        snapshot = self.draft_store.load(guide_id, athlete_id)
        if snapshot is None:
            return Ok(None)
        try:
            session = WizardSession.model_validate(snapshot)
        except ValidationError as e:
            logger.warning(f"[WIZARD] Discarding draft that no longer validates: {e.error_count()} errors", guide_id=guide_id)
            self.draft_store.delete(guide_id, athlete_id)
            return Ok(None)
        if session.guide_id != guide_id or session.athlete.id != athlete_id:
            logger.warning("[WIZARD] Discarding draft stored for a different pair", guide_id=guide_id)
            self.draft_store.delete(guide_id, athlete_id)
            return Ok(None)
        self.session = session
        self._refresh_scores()
        logger.info(f"[WIZARD] Draft restored at step {session.current_step}", guide_id=guide_id, athlete_id=athlete_id)
        return Ok(session)

    def clear_draft(self) -> None:
        """Delete the stored draft and drop the in-memory session."""
        if self.session is not None:
            self.draft_store.delete(self.session.guide_id, self.session.athlete.id)
        self.session = None

    # ============================================
    # Submission
    # ============================================

    def build_payload(self) -> Result[EvaluationPayload]:
        """Assemble the final submission with freshly recomputed derived scores."""
        if self.session is None:
            return _NO_SESSION
        s = self.session
        if s.basic_measurements is None or not s.basic_measurements.is_complete:
            return Err(
                code=ErrorCode.MISSING_MANDATORY_BATTERY,
                message="Basic measurements are mandatory for every evaluation.",
            )
        self._refresh_scores()
        return Ok(
            EvaluationPayload(
                athlete_id=s.athlete.id,
                guide_id=s.guide_id,
                request_id=s.evaluation.request_id,
                evaluation_date=s.evaluation.evaluation_date,
                basic_measurements=s.basic_measurements,
                strength_and_power=dict(s.strength_and_power),
                speed_and_agility=dict(s.speed_and_agility),
                stamina_and_recovery=dict(s.stamina_and_recovery),
                derived_scores=s.derived_scores,
            )
        )
