"""Tests for the evaluation request lifecycle.

Tests cover:
- Create: PENDING, guide notified, one request per athlete/guide pair
- Accept: ACCEPTED with schedule + code, two notifications, ownership/status checks
- Reject: notification + removal, request unrecoverable afterwards
- Crash safety: a failing notification leaves the request PENDING
- Guide inbox ordering and visibility
"""

from datetime import UTC, date, datetime

import pytest
from sqlalchemy import select

from evalcore.db.models import EvaluationRequest, Guide, GuideStatus, Notification, RequestStatus
from evalcore.evaluations.errors import ErrorCode
from evalcore.evaluations.notifications import NotificationType
from evalcore.evaluations.otp import OTP_MAX, OTP_MIN, OTPAuthority
from evalcore.evaluations.request_service import EvaluationRequestService
from evalcore.evaluations.schemas import ScheduleInput


class FailingNotifier:
    """Notification sink that always fails, simulating a crash mid-transaction."""

    def notify(self, recipient_id, type, title, message, payload, *, actor_id=None):
        raise RuntimeError("notification backend unavailable")


def _notifications(db_session, recipient_id=None):
    stmt = select(Notification)
    if recipient_id is not None:
        stmt = stmt.where(Notification.recipient_id == recipient_id)
    return list(db_session.scalars(stmt).all())


class TestCreateRequest:
    """Test request creation."""

    def test_creates_pending_request_and_notifies_guide(self, db_session, athlete_caller, guide):
        result = EvaluationRequestService(db_session).create_request(athlete_caller, guide.id, "Please evaluate me")

        assert result.ok
        assert result.value.status == RequestStatus.PENDING
        assert result.value.otp is None
        notes = _notifications(db_session, guide.id)
        assert len(notes) == 1
        assert notes[0].type == NotificationType.EVALUATION_REQUESTED.value
        assert notes[0].payload["request_id"] == result.value.id

    def test_second_request_for_same_pair_conflicts(self, db_session, athlete_caller, guide, pending_request):
        result = EvaluationRequestService(db_session).create_request(athlete_caller, guide.id)

        assert not result.ok
        assert result.code == ErrorCode.STATUS_CONFLICT

    def test_guide_cannot_create_request(self, db_session, guide_caller, guide):
        result = EvaluationRequestService(db_session).create_request(guide_caller, guide.id)

        assert result.code == ErrorCode.FORBIDDEN

    def test_unknown_guide_is_not_found(self, db_session, athlete_caller):
        result = EvaluationRequestService(db_session).create_request(athlete_caller, "missing-guide")

        assert result.code == ErrorCode.NOT_FOUND

    def test_unapproved_guide_is_forbidden(self, db_session, athlete_caller):
        pending_guide = Guide(user_id="user_pending_guide", status=GuideStatus.PENDING.value)
        db_session.add(pending_guide)
        db_session.commit()

        result = EvaluationRequestService(db_session).create_request(athlete_caller, pending_guide.id)

        assert result.code == ErrorCode.FORBIDDEN


class TestAcceptRequest:
    """Test accepting a pending request."""

    def test_accept_sets_status_code_and_schedule(self, db_session, pending_request, guide_caller, schedule):
        result = EvaluationRequestService(db_session).accept_request(pending_request.id, guide_caller, schedule)

        assert result.ok
        view = result.value
        assert view.status == RequestStatus.ACCEPTED
        assert OTP_MIN <= view.otp <= OTP_MAX
        assert view.scheduled_date == date(2026, 11, 2)
        assert view.scheduled_time == "09:30"
        assert view.location == "City Stadium, Track 2"
        assert view.equipment == ["cones", "stopwatch", "jump mat"]
        assert view.message_from_guide == "Bring running shoes"

    def test_accept_notifies_athlete_and_guide(self, db_session, pending_request, guide_caller, schedule, athlete, guide):
        result = EvaluationRequestService(db_session).accept_request(pending_request.id, guide_caller, schedule)

        athlete_notes = _notifications(db_session, athlete.id)
        assert [n.type for n in athlete_notes] == [NotificationType.EVALUATION_ACCEPTED.value]
        assert athlete_notes[0].payload["otp"] == result.value.otp
        assert athlete_notes[0].payload["location"] == "City Stadium, Track 2"

        guide_types = {n.type for n in _notifications(db_session, guide.id)}
        assert NotificationType.EVALUATION_SCHEDULED.value in guide_types

    def test_accepted_code_verifies(self, db_session, accepted_request, guide):
        result = OTPAuthority(db_session).verify(guide.id, accepted_request.otp)

        assert result.ok
        assert result.value.request_id == accepted_request.id

    def test_missing_schedule_fields_are_reported_per_field(self, db_session, pending_request, guide_caller):
        result = EvaluationRequestService(db_session).accept_request(
            pending_request.id, guide_caller, ScheduleInput(time="  ", location=None)
        )

        assert result.code == ErrorCode.VALIDATION_ERROR
        assert set(result.field_errors) == {"date", "time", "location"}
        assert db_session.get(EvaluationRequest, pending_request.id).status == RequestStatus.PENDING.value

    def test_other_guide_is_forbidden(self, db_session, pending_request, other_guide_caller, schedule):
        result = EvaluationRequestService(db_session).accept_request(pending_request.id, other_guide_caller, schedule)

        assert result.code == ErrorCode.FORBIDDEN

    def test_athlete_cannot_accept(self, db_session, pending_request, athlete_caller, schedule):
        result = EvaluationRequestService(db_session).accept_request(pending_request.id, athlete_caller, schedule)

        assert result.code == ErrorCode.FORBIDDEN

    def test_unknown_request_is_not_found(self, db_session, guide_caller, schedule):
        result = EvaluationRequestService(db_session).accept_request("nope", guide_caller, schedule)

        assert result.code == ErrorCode.NOT_FOUND

    def test_second_accept_conflicts_and_keeps_code(self, db_session, accepted_request, guide_caller, schedule):
        result = EvaluationRequestService(db_session).accept_request(accepted_request.id, guide_caller, schedule)

        assert result.code == ErrorCode.STATUS_CONFLICT
        assert db_session.get(EvaluationRequest, accepted_request.id).otp == accepted_request.otp

    def test_failed_notification_leaves_request_pending(self, db_session, pending_request, guide_caller, schedule, athlete):
        service = EvaluationRequestService(db_session, notifier=FailingNotifier())

        result = service.accept_request(pending_request.id, guide_caller, schedule)

        assert result.code == ErrorCode.INTERNAL_ERROR
        assert result.trace_id.startswith("REQUEST_ACCEPT_")
        request = db_session.get(EvaluationRequest, pending_request.id)
        assert request.status == RequestStatus.PENDING.value
        assert request.otp is None
        assert _notifications(db_session, athlete.id) == []

    def test_retry_after_failure_succeeds(self, db_session, pending_request, guide_caller, schedule):
        EvaluationRequestService(db_session, notifier=FailingNotifier()).accept_request(pending_request.id, guide_caller, schedule)

        result = EvaluationRequestService(db_session).accept_request(pending_request.id, guide_caller, schedule)

        assert result.ok
        assert result.value.status == RequestStatus.ACCEPTED


class TestRejectRequest:
    """Test rejecting a pending request."""

    def test_reject_notifies_athlete_and_removes_request(self, db_session, pending_request, guide_caller, athlete, athlete_caller):
        service = EvaluationRequestService(db_session)

        result = service.reject_request(pending_request.id, guide_caller)

        assert result.ok
        assert db_session.get(EvaluationRequest, pending_request.id) is None
        assert service.get_request(pending_request.id, athlete_caller).code == ErrorCode.NOT_FOUND
        notes = _notifications(db_session, athlete.id)
        assert [n.type for n in notes] == [NotificationType.EVALUATION_REJECTED.value]

    def test_reject_accepted_request_conflicts(self, db_session, accepted_request, guide_caller):
        result = EvaluationRequestService(db_session).reject_request(accepted_request.id, guide_caller)

        assert result.code == ErrorCode.STATUS_CONFLICT

    def test_reject_by_other_guide_is_forbidden(self, db_session, pending_request, other_guide_caller):
        result = EvaluationRequestService(db_session).reject_request(pending_request.id, other_guide_caller)

        assert result.code == ErrorCode.FORBIDDEN

    def test_failed_notification_keeps_request(self, db_session, pending_request, guide_caller):
        result = EvaluationRequestService(db_session, notifier=FailingNotifier()).reject_request(pending_request.id, guide_caller)

        assert result.code == ErrorCode.INTERNAL_ERROR
        request = db_session.get(EvaluationRequest, pending_request.id)
        assert request is not None
        assert request.status == RequestStatus.PENDING.value


class TestReadRequests:
    """Test request lookup and the guide inbox."""

    def test_inbox_lists_newest_first_with_athlete_summary(self, db_session, guide, guide_caller, athlete, second_athlete):
        older = EvaluationRequest(athlete_id=athlete.id, guide_id=guide.id, created_at=datetime(2026, 1, 1, tzinfo=UTC))
        newer = EvaluationRequest(athlete_id=second_athlete.id, guide_id=guide.id, created_at=datetime(2026, 2, 1, tzinfo=UTC))
        db_session.add_all([older, newer])
        db_session.commit()

        result = EvaluationRequestService(db_session).list_guide_requests(guide_caller)

        assert [v.id for v in result.value] == [newer.id, older.id]
        assert result.value[1].athlete.username == "jdoe"

    def test_inbox_excludes_other_guides(self, db_session, pending_request, other_guide_caller):
        result = EvaluationRequestService(db_session).list_guide_requests(other_guide_caller)

        assert result.value == []

    def test_athlete_has_no_inbox(self, db_session, athlete_caller):
        assert EvaluationRequestService(db_session).list_guide_requests(athlete_caller).code == ErrorCode.FORBIDDEN

    @pytest.mark.parametrize("caller_fixture", ["athlete_caller", "guide_caller"])
    def test_owner_can_read_request(self, request, db_session, pending_request, caller_fixture):
        caller = request.getfixturevalue(caller_fixture)

        result = EvaluationRequestService(db_session).get_request(pending_request.id, caller)

        assert result.ok
        assert result.value.id == pending_request.id

    def test_other_guide_cannot_read_request(self, db_session, pending_request, other_guide_caller):
        result = EvaluationRequestService(db_session).get_request(pending_request.id, other_guide_caller)

        assert result.code == ErrorCode.FORBIDDEN
