"""
Tests for the SRI assessment web API.
"""

from functools import partial

import pytest
from fastapi.testclient import TestClient

from assessment_platform.persistence import ProgressStore, get_connection
from assessment_platform.models import Demographics, Response
from assessment_platform.scoring import calculate_assessment_results
from web.app import app
from web.routes import session_mgr

A_IDS = ["a_1", "a_2", "a_3", "a_4", "a_5"]
B_IDS = ["b_1", "b_2", "b_3"]
SINGLE = {"age": "2", "gender": "female", "relationship_status": "single"}
MARRIED = {"age": "2", "gender": "female", "relationship_status": "married"}


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "web.db"


@pytest.fixture
def reset_session(db_path, resolver, test_scales):
    """Point the shared manager at a temporary store and the test catalogue."""
    session_mgr.close()
    session_mgr.db_path = db_path
    session_mgr.resolver = resolver
    session_mgr.scoring_fn = partial(calculate_assessment_results, scales=test_scales)
    yield
    session_mgr.close()
    session_mgr.db_path = None
    session_mgr.resolver = None
    session_mgr.scoring_fn = None


def _answers(ids, value=4):
    return {"responses": [{"question_id": q, "value": value} for q in ids]}


def _to_questionnaire(client, demographics=SINGLE):
    client.post("/api/assessment/start", json={"type": "quick"})
    client.post("/api/assessment/consent", json={"consented": True})
    return client.post("/api/assessment/demographics", json=demographics)


class TestConfig:
    def test_config(self, client):
        data = client.get("/api/config").json()
        assert data["assessment_types"] == ["quick", "full"]
        assert "redirect_delay_seconds" in data

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"


class TestNoFlow:
    def test_state_inactive(self, client, reset_session):
        assert client.get("/api/assessment").json() == {"active": False}

    @pytest.mark.parametrize("path", [
        "/api/assessment/consent",
        "/api/assessment/complete",
        "/api/assessment/back",
        "/api/assessment/resume/continue",
        "/api/assessment/gate/dismiss",
    ])
    def test_operations_need_a_flow(self, client, reset_session, path):
        assert client.post(path, json={}).status_code == 404

    def test_questions_need_a_flow(self, client, reset_session):
        assert client.get("/api/assessment/questions").status_code == 404


class TestFlow:
    def test_start(self, client, reset_session):
        data = client.post("/api/assessment/start", json={"type": "full"}).json()
        assert data["active"] is True
        assert data["step"] == "consent"
        assert data["assessment_type"] == "full"
        assert data["progress"] == 25
        assert data["gate"] is None

    def test_walkthrough_to_results(self, client, reset_session):
        data = _to_questionnaire(client).json()
        assert data["step"] == "questionnaire"

        questions = client.get("/api/assessment/questions").json()
        assert questions["scales"] == ["A", "B"]
        assert [q["id"] for q in questions["questions"]] == A_IDS + B_IDS

        body = _answers(A_IDS + B_IDS)
        body["current_page"] = 2
        data = client.post("/api/assessment/responses", json=body).json()
        assert data["accepted"] == 8
        assert data["response_count"] == 8

        data = client.post("/api/assessment/complete").json()
        assert data["step"] == "completed"
        assert data["results"]["answered"] == 8

        stored = client.get(f"/api/sessions/{data['session_id']}").json()
        assert stored["completed"] is True

    def test_responses_outside_question_set_are_dropped(self, client, reset_session):
        _to_questionnaire(client)
        data = client.post("/api/assessment/responses", json=_answers(["a_1", "c_1"])).json()
        assert data["accepted"] == 1
        assert data["dropped"] == 1

    def test_invalid_transition_is_409(self, client, reset_session):
        client.post("/api/assessment/start", json={})
        response = client.post("/api/assessment/complete")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "invalid_transition"

    def test_back_from_consent_navigates_home(self, client, reset_session):
        client.post("/api/assessment/start", json={})
        data = client.post("/api/assessment/back").json()
        assert data["navigated"] == "home"
        assert data["step"] == "consent"

    def test_demographics_requires_age(self, client, reset_session):
        client.post("/api/assessment/start", json={})
        client.post("/api/assessment/consent", json={"consented": True})
        assert client.post("/api/assessment/demographics", json={"age": " "}).status_code == 400
        assert client.post("/api/assessment/demographics", json={}).status_code == 422

    def test_bad_timestamp_is_400(self, client, reset_session):
        _to_questionnaire(client)
        body = {"responses": [{"question_id": "a_1", "value": 3, "timestamp": "soon"}]}
        assert client.post("/api/assessment/responses", json=body).status_code == 400


class TestGates:
    def test_data_change_on_demographics_edit(self, client, reset_session, db_path):
        _to_questionnaire(client)
        client.post("/api/assessment/responses", json=_answers(A_IDS + B_IDS))
        client.post("/api/assessment/back")

        data = client.post("/api/assessment/demographics", json=MARRIED).json()
        assert data["step"] == "demographics"
        assert data["gate"]["kind"] == "data_change"
        assert data["gate"]["discarded_count"] == 3
        assert data["gate"]["total_count"] == 8

        assert client.post("/api/assessment/gate/dismiss").json()["closed"] is False

        data = client.post("/api/assessment/data-change/confirm").json()
        assert data["step"] == "questionnaire"
        assert data["response_count"] == 5
        assert data["gate"] is None

        conn = get_connection(db_path)
        try:
            stored = ProgressStore(conn).load("quick")
        finally:
            conn.close()
        assert [r.question_id for r in stored.responses] == A_IDS

    def test_resume_gate_continue(self, client, reset_session, db_path):
        conn = get_connection(db_path)
        ProgressStore(conn).write(
            "quick",
            Demographics(age="2", relationship_status="single"),
            [Response(q, 5) for q in A_IDS],
            1,
        )
        conn.close()

        data = client.post("/api/assessment/start", json={"type": "quick"}).json()
        assert data["gate"]["kind"] == "resume"
        assert data["gate"]["response_count"] == 5

        data = client.post("/api/assessment/resume/continue").json()
        assert data["outcome"] == "committed"
        assert data["step"] == "questionnaire"
        assert data["resume_page"] == 1
        assert data["resume_token"] is not None

    def test_resume_gate_discard(self, client, reset_session, db_path):
        conn = get_connection(db_path)
        ProgressStore(conn).write("quick", Demographics(age="1"), [Response("a_1", 2)], 0)
        conn.close()

        client.post("/api/assessment/start", json={})
        data = client.post("/api/assessment/resume/discard").json()
        assert data["step"] == "consent"
        assert data["response_count"] == 0
        assert client.get("/api/assessment").json()["gate"] is None

    def test_responses_refused_during_resume_prompt(self, client, reset_session, db_path):
        conn = get_connection(db_path)
        ProgressStore(conn).write(
            "quick",
            Demographics(age="2", relationship_status="single"),
            [Response(q, 3) for q in ("a_1", "a_2", "b_1")],
            1,
        )
        before = ProgressStore(conn).read_raw()
        conn.close()

        client.post("/api/assessment/start", json={"type": "quick"})
        response = client.post("/api/assessment/responses", json=_answers(["a_1"]))
        assert response.status_code == 409

        conn = get_connection(db_path)
        try:
            assert ProgressStore(conn).read_raw() == before
        finally:
            conn.close()

        data = client.post("/api/assessment/resume/continue").json()
        assert data["response_count"] == 3

    def test_responses_refused_during_data_change_prompt(self, client, reset_session):
        _to_questionnaire(client)
        client.post("/api/assessment/responses", json=_answers(A_IDS + B_IDS))
        client.post("/api/assessment/back")
        client.post("/api/assessment/demographics", json=MARRIED)

        response = client.post("/api/assessment/responses", json=_answers(["a_1"]))
        assert response.status_code == 409
        assert client.get("/api/assessment").json()["response_count"] == 8

    def test_answering_a_closed_gate_is_409(self, client, reset_session):
        client.post("/api/assessment/start", json={})
        assert client.post("/api/assessment/data-change/restart").status_code == 409


class TestSessions:
    def test_unknown_session_is_404(self, client, reset_session):
        assert client.get("/api/sessions/nope").status_code == 404
        assert client.delete("/api/sessions/nope").status_code == 404

    def test_list_and_delete(self, client, reset_session):
        _to_questionnaire(client)
        sessions = client.get("/api/sessions").json()["sessions"]
        assert len(sessions) == 1
        session_id = sessions[0]["id"]
        assert client.delete(f"/api/sessions/{session_id}").json()["deleted"] is True
