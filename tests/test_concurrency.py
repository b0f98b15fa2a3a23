"""
Races on one (student, assignment, problem) key.

Real concurrency is simulated deterministically: a competing request is run
in its own session at the exact point where the first request has read the
row but not yet written it.
"""
import pytest

from physics_practice.core.errors import TerminalStateConflict
from physics_practice.models.submission import Submission
from physics_practice.schemas.auth import Identity
from physics_practice.services import submissions as service
from physics_practice.services.grading import GradeResult

STUDENT = Identity(username="student1", role="student")


def _competing_submit(db_factory, seed_data, answer):
    other = db_factory()
    try:
        service.submit_answer(other, STUDENT, seed_data["assignment_id"], seed_data["velocity_id"], answer)
    finally:
        other.close()


def test_stale_compare_and_swap_writes_nothing(db, seed_data):
    submission, _ = service.submit_answer(db, STUDENT, seed_data["assignment_id"], seed_data["velocity_id"], -1)
    assert submission.attempts == 1

    ok = service.record_attempt(
        db,
        submission.id,
        seen_attempts=0,
        max_attempts=3,
        user_answer=42.0,
        correct_answer=1.0,
        result=GradeResult(is_correct=False, percent_diff=4100.0),
    )
    assert ok is False

    db.expire_all()
    row = db.query(Submission).filter(Submission.id == submission.id).one()
    assert row.attempts == 1
    assert row.user_answer == -1


def test_lost_race_rechecks_and_still_counts_attempt(db, seed_data, session_factory, monkeypatch):
    real_evaluate = service.evaluate
    calls = {"n": 0}

    def evaluate_with_competitor(formula, values):
        calls["n"] += 1
        if calls["n"] == 1:
            # another request grades the same key while this one is mid-flight
            _competing_submit(session_factory, seed_data, -2)
        return real_evaluate(formula, values)

    monkeypatch.setattr(service, "evaluate", evaluate_with_competitor)

    submission, _ = service.submit_answer(db, STUDENT, seed_data["assignment_id"], seed_data["velocity_id"], -1)

    # competitor's attempt plus ours, graded against the same frozen row
    assert submission.attempts == 2
    assert submission.user_answer == -1


def test_lost_race_on_last_attempt_is_rejected(db, seed_data, session_factory, monkeypatch):
    aid, pid = seed_data["assignment_id"], seed_data["velocity_id"]
    service.submit_answer(db, STUDENT, aid, pid, -1)
    service.submit_answer(db, STUDENT, aid, pid, -1)

    real_evaluate = service.evaluate
    calls = {"n": 0}

    def evaluate_with_competitor(formula, values):
        calls["n"] += 1
        if calls["n"] == 1:
            _competing_submit(session_factory, seed_data, -3)
        return real_evaluate(formula, values)

    monkeypatch.setattr(service, "evaluate", evaluate_with_competitor)

    with pytest.raises(TerminalStateConflict):
        service.submit_answer(db, STUDENT, aid, pid, -1)

    db.expire_all()
    row = db.query(Submission).one()
    assert row.attempts == 3
    assert row.user_answer == -3


def test_lost_race_after_competitor_solved_is_rejected(db, seed_data, session_factory, monkeypatch):
    aid, pid = seed_data["assignment_id"], seed_data["velocity_id"]
    real_evaluate = service.evaluate
    calls = {"n": 0}

    def evaluate_with_competitor(formula, values):
        calls["n"] += 1
        if calls["n"] == 1:
            _competing_submit(session_factory, seed_data, real_evaluate(formula, values))
        return real_evaluate(formula, values)

    monkeypatch.setattr(service, "evaluate", evaluate_with_competitor)

    with pytest.raises(TerminalStateConflict, match="already solved"):
        service.submit_answer(db, STUDENT, aid, pid, -1)

    db.expire_all()
    row = db.query(Submission).one()
    assert row.attempts == 1
    assert row.is_correct is True


def test_creation_race_reuses_existing_row(db, seed_data, monkeypatch):
    aid, pid = seed_data["assignment_id"], seed_data["velocity_id"]

    # the other request creates the row first
    service.submit_answer(db, STUDENT, aid, pid, -1)
    existing_id = db.query(Submission).one().id

    real_find = service.find_submission
    calls = {"n": 0}

    def stale_find(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            return None  # read happened before the competitor's insert
        return real_find(*args, **kwargs)

    monkeypatch.setattr(service, "find_submission", stale_find)

    assignment, problem = service.load_assignment_problem(db, aid, pid)
    submission = service.get_or_create_submission(db, "student1", assignment, problem)

    assert submission.id == existing_id
    assert submission.attempts == 1
    assert db.query(Submission).count() == 1


def test_flood_of_submissions_stops_at_budget(db, seed_data):
    aid, pid = seed_data["assignment_id"], seed_data["velocity_id"]
    rejected = 0

    for _ in range(3 + 5):
        try:
            service.submit_answer(db, STUDENT, aid, pid, -1)
        except TerminalStateConflict:
            rejected += 1

    assert rejected == 5
    assert db.query(Submission).one().attempts == 3
