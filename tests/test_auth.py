import logging
import re

from physics_practice.core.config import SESSION_COOKIE_NAME


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_login_returns_token_and_sets_session_cookie(client):
    r = client.post("/api/login", json={"username": "teacher", "password": "password123"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"] == {"username": "teacher", "role": "teacher"}
    assert SESSION_COOKIE_NAME in r.cookies


def test_login_wrong_password(client):
    r = client.post("/api/login", json={"username": "teacher", "password": "nope"})
    assert r.status_code == 401


def test_login_unknown_user(client):
    r = client.post("/api/login", json={"username": "ghost", "password": "password123"})
    assert r.status_code == 401


def test_me_uses_session_cookie(client):
    client.post("/api/login", json={"username": "student1", "password": "password123"})
    r = client.get("/api/me")
    assert r.status_code == 200
    assert r.json() == {"username": "student1", "role": "student"}


def test_me_accepts_bearer_token(client, teacher_headers):
    client.cookies.clear()
    r = client.get("/api/me", headers=teacher_headers)
    assert r.status_code == 200
    assert r.json()["role"] == "teacher"


def test_logout_clears_session(client):
    client.post("/api/login", json={"username": "student1", "password": "password123"})
    r = client.post("/api/logout")
    assert r.status_code == 204
    client.cookies.clear()
    assert client.get("/api/me").status_code == 401


def test_requests_without_identity_are_rejected(client):
    assert client.get("/api/me").status_code == 401
    assert client.get("/api/assignments").status_code == 401


def test_garbage_token_is_rejected(client):
    r = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_student_cannot_use_teacher_routes(client, student_headers):
    assert client.get("/api/problems", headers=student_headers).status_code == 403
    assert client.get("/api/students", headers=student_headers).status_code == 403


def test_teacher_cannot_submit_answers(client, teacher_headers, seed_data):
    r = client.post(
        "/api/submit-answer",
        headers=teacher_headers,
        json={"assignmentId": seed_data["assignment_id"], "problemId": seed_data["velocity_id"], "answer": 1},
    )
    assert r.status_code == 403


def test_requests_are_logged_with_status_and_duration(client, caplog):
    with caplog.at_level(logging.INFO, logger="physics_practice.core.logging_middleware"):
        client.get("/api/me")

    lines = [r.getMessage() for r in caplog.records if r.name == "physics_practice.core.logging_middleware"]
    assert re.fullmatch(r"GET /api/me -> 401 \(\d+\.\d\ds\)", lines[-1])
