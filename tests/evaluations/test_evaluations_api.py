"""HTTP surface tests for the evaluation endpoints.

The router is mounted on a bare app with get_db overridden to yield the
test's own session. Fixture objects and requests then share one connection
and one transaction state, so reading a fixture attribute between calls
never leaves a second transaction open on the in-memory database.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from evalcore.api.evaluations import router
from evalcore.db.models import EvaluationRequest
from evalcore.db.session import get_db


@pytest.fixture
def client(db_session):
    app = FastAPI()
    app.include_router(router)

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)


def _as(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


class TestAuthentication:
    def test_missing_header_is_401(self, client):
        response = client.get("/evaluations/requests")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHENTICATED"

    def test_unknown_user_is_403(self, client, guide):
        response = client.get("/evaluations/requests", headers=_as("nobody"))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "FORBIDDEN"

    def test_athlete_cannot_open_guide_inbox(self, client, athlete, guide):
        response = client.get("/evaluations/requests", headers=_as(athlete.user_id))

        assert response.status_code == 403


class TestRequestEndpoints:
    """Test the request lifecycle over HTTP."""

    def test_full_accept_flow(self, client, athlete, guide):
        created = client.post(
            "/evaluations/requests",
            json={"guide_id": guide.id, "message": "Preseason testing"},
            headers=_as(athlete.user_id),
        )
        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status"] == "PENDING"

        inbox = client.get("/evaluations/requests", headers=_as(guide.user_id))
        assert [r["id"] for r in inbox.json()] == [request_id]
        assert inbox.json()[0]["athlete"]["username"] == "jdoe"

        accepted = client.post(
            f"/evaluations/requests/{request_id}/accept",
            json={"date": "2026-11-02", "time": "09:30", "location": "Track 2", "equipment": "cones, timer"},
            headers=_as(guide.user_id),
        )
        assert accepted.status_code == 200
        body = accepted.json()
        assert body["status"] == "ACCEPTED"
        assert body["equipment"] == ["cones", "timer"]

        verified = client.post("/evaluations/otp/verify", json={"code": str(body["otp"])}, headers=_as(guide.user_id))
        assert verified.status_code == 200
        assert verified.json()["athlete"]["id"] == athlete.id
        assert verified.json()["request_id"] == request_id

    def test_writes_between_fixture_reads_commit(self, client, db_session, athlete, guide, second_athlete):
        first = client.post("/evaluations/requests", json={"guide_id": guide.id}, headers=_as(athlete.user_id))
        second = client.post("/evaluations/requests", json={"guide_id": guide.id}, headers=_as(second_athlete.user_id))

        assert first.status_code == 201
        assert second.status_code == 201
        assert db_session.get(EvaluationRequest, first.json()["id"]).athlete_id == athlete.id
        assert db_session.get(EvaluationRequest, second.json()["id"]).athlete_id == second_athlete.id

    def test_duplicate_request_is_409(self, client, athlete, guide, pending_request):
        response = client.post("/evaluations/requests", json={"guide_id": guide.id}, headers=_as(athlete.user_id))

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "STATUS_CONFLICT"

    def test_accept_missing_fields_is_422_with_field_errors(self, client, guide, pending_request):
        response = client.post(
            f"/evaluations/requests/{pending_request.id}/accept",
            json={"time": "10:00"},
            headers=_as(guide.user_id),
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        assert set(detail["field_errors"]) == {"date", "location"}

    def test_reject_then_lookup_is_404(self, client, athlete, guide, pending_request):
        rejected = client.post(f"/evaluations/requests/{pending_request.id}/reject", headers=_as(guide.user_id))
        assert rejected.status_code == 200
        assert rejected.json() == {"request_id": pending_request.id, "status": "REJECTED"}

        lookup = client.get(f"/evaluations/requests/{pending_request.id}", headers=_as(athlete.user_id))
        assert lookup.status_code == 404

    def test_other_guide_accept_is_403(self, client, other_guide, pending_request):
        response = client.post(
            f"/evaluations/requests/{pending_request.id}/accept",
            json={"date": "2026-11-02", "time": "09:30", "location": "Track 2"},
            headers=_as(other_guide.user_id),
        )

        assert response.status_code == 403

    def test_wrong_code_is_400(self, client, guide, accepted_request):
        wrong = "100000" if accepted_request.otp != 100000 else "100001"

        response = client.post("/evaluations/otp/verify", json={"code": wrong}, headers=_as(guide.user_id))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "OTP_INVALID"
