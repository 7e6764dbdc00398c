"""Fixtures for stats wizard tests."""

import pytest

from evalcore.evaluations.schemas import AthleteSnapshot
from evalcore.stats.drafts import JsonFileDraftStore
from evalcore.stats.wizard import EvaluationMeta, StatsWizardEngine


@pytest.fixture
def draft_store(tmp_path):
    return JsonFileDraftStore(tmp_path / "drafts")


@pytest.fixture
def snapshot() -> AthleteSnapshot:
    return AthleteSnapshot(
        id="athlete-1",
        user_id="user_athlete",
        username="jdoe",
        first_name="Jamie",
        gender="female",
        rank="B",
        athlete_class="senior",
    )


@pytest.fixture
def wizard(draft_store, snapshot) -> StatsWizardEngine:
    engine = StatsWizardEngine(draft_store)
    engine.initialize(snapshot, "guide-1", EvaluationMeta(request_id="request-1"))
    return engine


def _complete_form_step(engine: StatsWizardEngine) -> None:
    """Mark the current form step valid and complete, then advance."""
    engine.on_validation_change(True)
    assert engine.mark_step_complete(engine.session.current_step).ok
    assert engine.next_step().ok


@pytest.fixture
def filled_wizard(wizard) -> StatsWizardEngine:
    """Wizard at the review step with every category filled in."""
    wizard.next_step()
    wizard.update_basic_measurements({"height_cm": 175, "weight_kg": 70})
    _complete_form_step(wizard)
    wizard.next_step()
    wizard.update_battery("strength_and_power", "pull_ups", {"reps": 15})
    _complete_form_step(wizard)
    wizard.next_step()
    wizard.update_battery("speed_and_agility", "ten_meter_sprint", {"attempts": [1.85]})
    _complete_form_step(wizard)
    wizard.next_step()
    wizard.update_battery("stamina_and_recovery", "cooper_test", {"distance_m": 2800})
    _complete_form_step(wizard)
    assert wizard.session.current_step == 9
    return wizard


@pytest.fixture
def complete_step():
    return _complete_form_step
