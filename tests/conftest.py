"""Root conftest for all tests.

Provides an in-memory SQLite database per test plus athlete/guide fixtures.
"""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from evalcore.db.models import Athlete, Base, Guide, GuideStatus
from evalcore.db.session import enable_sqlite_savepoints
from evalcore.evaluations.request_service import EvaluationRequestService
from evalcore.evaluations.schemas import CallerProfile, ProfileRole, ScheduleInput


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across connections via StaticPool."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _add(session, obj):
    session.add(obj)
    session.commit()
    return obj


@pytest.fixture
def athlete(db_session) -> Athlete:
    return _add(
        db_session,
        Athlete(
            user_id="user_athlete",
            username="jdoe",
            first_name="Jamie",
            last_name="Doe",
            gender="male",
            primary_sport="football",
            rank="B",
            athlete_class="senior",
            city="Pune",
            country="IN",
        ),
    )


@pytest.fixture
def second_athlete(db_session) -> Athlete:
    return _add(db_session, Athlete(user_id="user_athlete_2", username="asmith", first_name="Alex", gender="female"))


@pytest.fixture
def guide(db_session) -> Guide:
    return _add(db_session, Guide(user_id="user_guide", display_name="Coach Kim", status=GuideStatus.APPROVED.value))


@pytest.fixture
def other_guide(db_session) -> Guide:
    return _add(db_session, Guide(user_id="user_guide_2", display_name="Coach Lee", status=GuideStatus.APPROVED.value))


@pytest.fixture
def athlete_caller(athlete) -> CallerProfile:
    return CallerProfile(id=athlete.id, role=ProfileRole.ATHLETE, user_id=athlete.user_id)


@pytest.fixture
def guide_caller(guide) -> CallerProfile:
    return CallerProfile(id=guide.id, role=ProfileRole.GUIDE, user_id=guide.user_id)


@pytest.fixture
def other_guide_caller(other_guide) -> CallerProfile:
    return CallerProfile(id=other_guide.id, role=ProfileRole.GUIDE, user_id=other_guide.user_id)


@pytest.fixture
def schedule() -> ScheduleInput:
    return ScheduleInput(
        date=date(2026, 11, 2),
        time="09:30",
        location="City Stadium, Track 2",
        equipment="cones, stopwatch, jump mat",
        message="Bring running shoes",
    )


@pytest.fixture
def pending_request(db_session, athlete_caller, guide):
    result = EvaluationRequestService(db_session).create_request(athlete_caller, guide.id, "Ready for testing")
    assert result.ok
    return result.value


@pytest.fixture
def accepted_request(db_session, pending_request, guide_caller, schedule):
    result = EvaluationRequestService(db_session).accept_request(pending_request.id, guide_caller, schedule)
    assert result.ok
    return result.value
