import pytest
from fastapi.testclient import TestClient

from core.database import get_db
from engines.registry import SessionRegistry, get_registry
from main import app

from conftest import create_tables, make_sessionmaker, make_test_engine

SESSIONS = "/api/practice/sessions"


@pytest.fixture
def registry(engine, clock):
    return SessionRegistry(engine, clock=clock)


@pytest.fixture
def client(registry):
    db_engine = make_test_engine()
    sessionmaker = make_sessionmaker(db_engine)

    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        test_client.portal.call(create_tables, db_engine)
        yield test_client
        test_client.portal.call(db_engine.dispose)
    app.dependency_overrides.clear()


def expected_answer(registry, session_id, player_id="local"):
    return registry.get(session_id, player_id).unwrap().question.answer


def error_code(response):
    return response.json()["error"]["code"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_groups_by_kind(client):
    response = client.get("/api/content/groups", params={"kind": "kanji"})
    assert response.status_code == 200
    groups = response.json()
    assert groups
    assert {g["kind"] for g in groups} == {"kanji"}
    assert all(len(g["preview"]) <= 5 for g in groups)


def test_resolve_selection(client):
    response = client.post("/api/content/resolve", json={"groups": ["hiragana-a", "hiragana-ka"]})
    assert response.status_code == 200
    assert response.json()["size"] == 10


def test_resolve_unknown_group(client):
    response = client.post("/api/content/resolve", json={"groups": ["hiragana-a", "nope"]})
    assert response.status_code == 400
    assert error_code(response) == "E2005_CONSTRAINT_VIOLATION"


def test_gauntlet_commits_once_and_updates_progress(client, registry):
    created = client.post(SESSIONS, json={"groups": ["hiragana-a"], "mode": "gauntlet", "question_cap": 3})
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "active"
    assert body["question_cap"] == 3
    assert len(body["question"]["options"]) == 4
    session_id = body["id"]

    for _ in range(3):
        body = client.post(
            f"{SESSIONS}/{session_id}/answer",
            json={"answer": expected_answer(registry, session_id)},
        ).json()

    assert body["status"] == "completed"
    assert body["completion_reason"] == "question_cap"
    assert body["correct_count"] == 3
    assert body["committed"] is True
    assert {a["id"] for a in body["unlocked"]} == {"first_steps", "gauntlet_runner", "flawless"}

    again = client.get(f"{SESSIONS}/{session_id}").json()
    assert again["committed"] is True
    assert again["unlocked"] == []

    stats = client.get("/api/progress/stats").json()
    assert stats["total_sessions"] == 1
    assert stats["total_correct"] == 3
    assert stats["sessions_by_mode"] == {"gauntlet": 1}
    assert stats["flawless_gauntlets"] == 1

    achievements = client.get("/api/progress/achievements").json()
    assert achievements["total_points"] == 75
    assert achievements["level"] == 1
    assert achievements["unlocked_count"] == 3


def test_blitz_deadline_via_tick(client, registry, clock):
    body = client.post(SESSIONS, json={"groups": ["hiragana-a"], "mode": "blitz", "duration_seconds": 60}).json()
    session_id = body["id"]
    assert body["remaining_seconds"] == 60.0
    assert body["poll_interval_ms"] == 250

    clock.advance(59.9)
    body = client.post(
        f"{SESSIONS}/{session_id}/answer",
        json={"answer": expected_answer(registry, session_id)},
    ).json()
    assert body["status"] == "active"

    clock.advance(0.2)
    body = client.post(f"{SESSIONS}/{session_id}/tick").json()
    assert body["status"] == "completed"
    assert body["completion_reason"] == "deadline"
    assert body["correct_count"] == 1
    assert body["remaining_seconds"] == 0.0
    assert body["committed"] is True

    stats = client.get("/api/progress/stats").json()
    assert stats["best_blitz_score"] == 1


def test_polls_after_blitz_completion_return_the_finished_session(client, clock):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"], "mode": "blitz", "duration_seconds": 5}).json()["id"]
    clock.advance(6.0)

    first = client.post(f"{SESSIONS}/{session_id}/tick")
    second = client.post(f"{SESSIONS}/{session_id}/tick")
    assert first.status_code == second.status_code == 200
    assert second.json()["status"] == "completed"
    assert second.json()["elapsed_ms"] == 5000
    assert client.get("/api/progress/stats").json()["total_sessions"] == 1


def test_stop_on_a_finished_standard_session_is_harmless(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"]}).json()["id"]
    assert client.post(f"{SESSIONS}/{session_id}/stop").status_code == 200

    again = client.post(f"{SESSIONS}/{session_id}/stop")
    assert again.status_code == 200
    assert again.json()["completion_reason"] == "stopped"
    assert client.get("/api/progress/stats").json()["total_sessions"] == 1


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc123"})
    assert response.headers["X-Correlation-ID"] == "abc123"


def test_type_mode_hides_options(client):
    body = client.post(SESSIONS, json={"groups": ["hiragana-a"], "input_mode": "type"}).json()
    assert body["question"]["options"] is None


def test_wrong_answer_feedback(client):
    body = client.post(SESSIONS, json={"groups": ["hiragana-a"]}).json()
    prompt = body["question"]["prompt"]
    body = client.post(f"{SESSIONS}/{body['id']}/answer", json={"answer": "definitely wrong"}).json()
    assert body["incorrect_count"] == 1
    assert body["last_outcome"]["prompt"] == prompt
    assert body["last_outcome"]["correct"] is False


def test_standard_stop_commits(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"]}).json()["id"]
    body = client.post(f"{SESSIONS}/{session_id}/stop").json()
    assert body["status"] == "completed"
    assert body["completion_reason"] == "stopped"
    assert client.get("/api/progress/stats").json()["total_sessions"] == 1


def test_stop_rejected_for_gauntlet(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"], "mode": "gauntlet"}).json()["id"]
    response = client.post(f"{SESSIONS}/{session_id}/stop")
    assert response.status_code == 409
    assert error_code(response) == "E5002_STATE_CONFLICT"


def test_answer_after_completion_conflicts(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"]}).json()["id"]
    client.post(f"{SESSIONS}/{session_id}/stop")
    response = client.post(f"{SESSIONS}/{session_id}/answer", json={"answer": "a"})
    assert response.status_code == 409


def test_empty_selection_is_rejected(client):
    response = client.post(SESSIONS, json={"groups": []})
    assert response.status_code == 422
    body = response.json()["error"]
    assert body["code"] == "E5030_EMPTY_SELECTION"
    assert body["message"] == "Select at least one group to start practicing"


def test_invalid_payload(client):
    response = client.post(SESSIONS, json={"groups": ["hiragana-a"], "mode": "gauntlet", "question_cap": 0})
    assert response.status_code == 400
    assert error_code(response) == "E2000_VALIDATION_GENERIC"
    assert response.json()["error"]["metadata"]["details"][0]["field"] == "question_cap"


def test_sessions_are_scoped_to_the_player(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"]}, headers={"X-Player-ID": "p1"}).json()["id"]

    assert client.get(f"{SESSIONS}/{session_id}", headers={"X-Player-ID": "p1"}).status_code == 200
    response = client.get(f"{SESSIONS}/{session_id}", headers={"X-Player-ID": "p2"})
    assert response.status_code == 404
    assert error_code(response) == "E4010_NOT_FOUND"

    client.post(f"{SESSIONS}/{session_id}/stop", headers={"X-Player-ID": "p1"})
    assert client.get("/api/progress/stats", headers={"X-Player-ID": "p2"}).json()["total_sessions"] == 0
    assert client.get("/api/progress/stats", headers={"X-Player-ID": "p1"}).json()["total_sessions"] == 1


def test_discard_commits_nothing(client):
    session_id = client.post(SESSIONS, json={"groups": ["hiragana-a"]}).json()["id"]
    assert client.delete(f"{SESSIONS}/{session_id}").status_code == 204
    assert client.get(f"{SESSIONS}/{session_id}").status_code == 404
    assert client.get("/api/progress/stats").json()["total_sessions"] == 0


def test_achievement_catalog_before_any_session(client):
    body = client.get("/api/progress/achievements").json()
    assert body["total_points"] == 0
    assert body["unlocked_count"] == 0
    assert all(a["unlocked_at"] is None for a in body["achievements"])
