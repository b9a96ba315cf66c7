"""
HTTP and realtime surface tests
"""
import pytest
from fastapi.testclient import TestClient

from codequiz import state
from codequiz.core.store import DocumentStore
from codequiz.main import app
from codequiz.models import Settings


ADMIN = {"X-User-Email": "Admin@Example.com"}
STRANGER = {"X-User-Email": "someone@example.com"}

MCQ = {
    "title": "Generators",
    "type": "mcq",
    "options": ["return", "yield"],
    "correct_option_index": 1,
    "points": 5,
    "time_limit": 60,
}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(state, "STORE", DocumentStore(state.EVENT_BUS))
    monkeypatch.setattr(state, "SETTINGS", Settings(admin_emails=["admin@example.com"]))
    return TestClient(app)


def create_running_session(client):
    question = client.post("/admin/questions", json=MCQ, headers=ADMIN).json()
    session = client.post(
        "/admin/sessions", json={"name": "Dev Day", "question_ids": [question["id"]]}, headers=ADMIN
    ).json()
    client.post(f"/admin/sessions/{session['id']}/activate", headers=ADMIN)
    client.post(f"/admin/sessions/{session['id']}/unlock-next", headers=ADMIN)
    return session["id"], question["id"]


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_admin_routes_require_identity(client):
    assert client.get("/admin/questions").status_code == 401
    assert client.get("/admin/questions", headers=STRANGER).status_code == 403
    assert client.get("/admin/questions", headers=ADMIN).status_code == 200


def test_invalid_question_rejected(client):
    bad = dict(MCQ, correct_option_index=5)
    assert client.post("/admin/questions", json=bad, headers=ADMIN).status_code == 422


def test_blank_mcq_option_rejected(client):
    """Every option must have text, including the one marked correct"""
    blank = dict(MCQ, options=["a", "b", "  "], correct_option_index=2)
    assert client.post("/admin/questions", json=blank, headers=ADMIN).status_code == 422


def test_question_crud(client):
    created = client.post("/admin/questions", json=MCQ, headers=ADMIN)
    assert created.status_code == 201
    qid = created.json()["id"]

    updated = client.put(f"/admin/questions/{qid}", json=dict(MCQ, title="Renamed"), headers=ADMIN)
    assert updated.json()["title"] == "Renamed"

    assert client.delete(f"/admin/questions/{qid}", headers=ADMIN).status_code == 200
    assert client.get(f"/admin/questions/{qid}", headers=ADMIN).status_code == 404


def test_full_flow(client):
    """Join, answer correctly, aggregate, read the leaderboard"""
    sid, qid = create_running_session(client)

    view = client.get(f"/sessions/{sid}").json()
    assert view["status"] == "active"
    assert view["question"]["id"] == qid
    assert "correct_option_index" not in view["question"]

    joined = client.post(f"/sessions/{sid}/teams", json={"team_name": "Alpha"})
    assert joined.status_code == 201
    team_id = joined.json()["team_id"]

    submitted = client.post(f"/sessions/{sid}/submissions", json={
        "team_id": team_id, "question_id": qid, "selected_option_index": 1
    })
    assert submitted.status_code == 201
    assert submitted.json()["status"] == "correct"
    assert submitted.json()["score"] == 5

    again = client.post(f"/sessions/{sid}/submissions", json={
        "team_id": team_id, "selected_option_index": 0
    })
    assert again.status_code == 409

    final = client.post(f"/admin/sessions/{sid}/final-scores", headers=ADMIN)
    assert final.json()["teams"][0]["score"] == 5

    board = client.get(f"/sessions/{sid}/leaderboard").json()
    assert board["teams"][0]["team_name"] == "Alpha"
    assert board["teams"][0]["score"] == 5

    finished = client.post(f"/admin/sessions/{sid}/unlock-next", headers=ADMIN).json()
    assert finished["completed"] is True
    assert finished["session"]["current_question_index"] == -1


def test_validation_errors(client):
    sid, _ = create_running_session(client)
    assert client.post(f"/sessions/{sid}/teams", json={"team_name": "  "}).status_code == 400
    team_id = client.post(f"/sessions/{sid}/teams", json={"team_name": "Beta"}).json()["team_id"]
    forced = client.post(f"/sessions/{sid}/submissions", json={"team_id": team_id, "forced": True})
    assert forced.status_code == 400
    assert client.get("/sessions/missing").status_code == 404


def test_stale_version_conflict(client):
    sid, _ = create_running_session(client)
    current = client.get(f"/admin/sessions/{sid}", headers=ADMIN).json()

    stale = client.post(
        f"/admin/sessions/{sid}/complete",
        json={"expected_version": current["version"] - 1},
        headers=ADMIN,
    )
    assert stale.status_code == 409

    fresh = client.post(
        f"/admin/sessions/{sid}/complete",
        json={"expected_version": current["version"]},
        headers=ADMIN,
    )
    assert fresh.json()["status"] == "completed"


def test_realtime_feed(client):
    """Snapshot first, then the session change after an unlock"""
    question = client.post("/admin/questions", json=MCQ, headers=ADMIN).json()
    session = client.post(
        "/admin/sessions", json={"name": "Live", "question_ids": [question["id"]]}, headers=ADMIN
    ).json()
    sid = session["id"]

    with client.websocket_connect(f"/ws/sessions/{sid}") as ws:
        first = ws.receive_json()
        assert first["kind"] == "added"
        assert first["data"]["status"] == "pending"

        client.post(f"/admin/sessions/{sid}/unlock-next", headers=ADMIN)

        change = ws.receive_json()
        assert change["kind"] == "modified"
        assert change["data"]["current_question_index"] == 0
        assert "correct_option_index" not in change["data"]["question"]
