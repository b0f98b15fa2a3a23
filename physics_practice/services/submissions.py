"""
Answer submission: instance freezing and the attempt state machine.

A Submission is keyed by (student, assignment, problem). It is created on the
first answer with its instance frozen, then graded until it is either correct
or out of attempts, after which every further answer is rejected untouched.

Attempts are recorded with a compare-and-swap UPDATE guarded by the attempt
count the request read, so two requests for the same key (double-clicked
submit, several server processes) can never both spend the last attempt.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from physics_practice.core.errors import EvaluationFailure, TerminalStateConflict
from physics_practice.models.assignment import Assignment
from physics_practice.models.problem import Problem
from physics_practice.models.submission import Submission
from physics_practice.schemas.auth import Identity
from physics_practice.services.formula import FormulaError, evaluate
from physics_practice.services.grading import GradeResult, check_answer, parse_answer
from physics_practice.services.instances import generate, instance_rng, render

logger = logging.getLogger(__name__)

STATUS_UNATTEMPTED = "unattempted"
STATUS_IN_PROGRESS = "in_progress"
STATUS_CORRECT = "correct"
STATUS_EXHAUSTED = "exhausted"
STATUS_TEMPLATE = "template"


def load_assignment_problem(db: Session, assignment_id: int, problem_id: int) -> Tuple[Assignment, Problem]:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")

    if problem_id not in (assignment.problem_ids or []):
        raise HTTPException(status_code=404, detail="Problem is not part of this assignment")

    problem = db.query(Problem).filter(Problem.id == problem_id).first()
    if not problem:
        raise HTTPException(status_code=404, detail="Problem not found")

    return assignment, problem


def find_submission(db: Session, username: str, assignment_id: int, problem_id: int) -> Optional[Submission]:
    return (
        db.query(Submission)
        .filter(
            Submission.student_username == username,
            Submission.assignment_id == assignment_id,
            Submission.problem_id == problem_id,
        )
        .first()
    )


def draw_instance(problem: Problem, username: str, assignment_id: int) -> Dict[str, float]:
    return generate(problem.variables, instance_rng(username, assignment_id, problem.id))


def get_or_create_submission(db: Session, username: str, assignment: Assignment, problem: Problem) -> Submission:
    """
    Return the submission for the key, creating it with a freshly frozen
    instance if none exists. When two requests race to create it, the unique
    constraint rejects the loser, which then reads the winner's row.
    """
    existing = find_submission(db, username, assignment.id, problem.id)
    if existing:
        return existing

    s = Submission(
        student_username=username,
        assignment_id=assignment.id,
        problem_id=problem.id,
        instance=draw_instance(problem, username, assignment.id),
        attempts=0,
    )
    db.add(s)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_submission(db, username, assignment.id, problem.id)
        if existing is None:
            raise
        logger.info(
            "Submission for %s/%s/%s was created concurrently; using existing row %s",
            username,
            assignment.id,
            problem.id,
            existing.id,
        )
        return existing

    db.refresh(s)
    return s


def record_attempt(
    db: Session,
    submission_id: int,
    seen_attempts: int,
    max_attempts: int,
    user_answer: float,
    correct_answer: float,
    result: GradeResult,
) -> bool:
    """
    Spend one attempt, provided the row is still exactly as the caller saw it.

    Returns False (and writes nothing) if another request graded the
    submission since `seen_attempts` was read.
    """
    stmt = (
        update(Submission)
        .where(
            Submission.id == submission_id,
            Submission.attempts == seen_attempts,
            Submission.attempts < max_attempts,
            or_(Submission.is_correct.is_(None), Submission.is_correct.is_(False)),
        )
        .values(
            attempts=Submission.attempts + 1,
            user_answer=user_answer,
            correct_answer=correct_answer,
            is_correct=result.is_correct,
            percent_diff=result.percent_diff,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )

    try:
        updated = db.execute(stmt).rowcount
        db.commit()
    except Exception:
        db.rollback()
        raise

    return updated == 1


def ensure_gradeable(submission: Submission, problem: Problem) -> None:
    if submission.is_correct:
        raise TerminalStateConflict("Problem already solved")
    if submission.attempts >= problem.max_attempts:
        raise TerminalStateConflict("No attempts remaining")


def submit_answer(
    db: Session,
    identity: Identity,
    assignment_id: int,
    problem_id: int,
    raw_answer: Any,
) -> Tuple[Submission, Problem]:
    user_answer = parse_answer(raw_answer)
    assignment, problem = load_assignment_problem(db, assignment_id, problem_id)
    submission = get_or_create_submission(db, identity.username, assignment, problem)

    while True:
        try:
            ensure_gradeable(submission, problem)
        except TerminalStateConflict as e:
            logger.info(
                "Rejected answer from %s for submission %s: %s",
                identity.username,
                submission.id,
                e.detail,
            )
            raise

        seen_attempts = submission.attempts

        try:
            correct_answer = evaluate(problem.formula, submission.instance)
        except FormulaError as e:
            logger.warning("Problem %s cannot be graded: %s", problem.id, e)
            raise EvaluationFailure(f"Problem {problem.id} cannot be graded: {e}") from e

        result = check_answer(user_answer, correct_answer, problem.tolerance_percent)

        if record_attempt(
            db,
            submission.id,
            seen_attempts,
            problem.max_attempts,
            user_answer,
            correct_answer,
            result,
        ):
            break

        # lost the race: commit expired the row, so this re-reads it
        logger.info("Submission %s was graded concurrently; re-checking", submission.id)
        db.refresh(submission)

    db.refresh(submission)
    logger.info(
        "Graded %s on assignment %s problem %s: correct=%s diff=%.2f%% attempt %s/%s",
        identity.username,
        assignment.id,
        problem.id,
        result.is_correct,
        result.percent_diff,
        submission.attempts,
        problem.max_attempts,
    )
    return submission, problem


def submission_status(submission: Optional[Submission], problem: Problem) -> str:
    if submission is None or submission.attempts == 0:
        return STATUS_UNATTEMPTED
    if submission.is_correct:
        return STATUS_CORRECT
    if submission.attempts >= problem.max_attempts:
        return STATUS_EXHAUSTED
    return STATUS_IN_PROGRESS


def attach_computed_fields(submission: Submission, problem: Problem) -> Submission:
    submission.max_attempts = problem.max_attempts
    submission.attempts_remaining = max(0, problem.max_attempts - submission.attempts)
    submission.problem_text = render(problem.description, submission.instance)
    return submission


def problem_view(db: Session, identity: Identity, assignment: Assignment, problem: Problem) -> dict:
    """
    A problem as `identity` sees it: rendered with their frozen instance, or
    with the preview draw that will be frozen on their first answer.
    Viewing never creates a submission.
    """
    submission = find_submission(db, identity.username, assignment.id, problem.id)
    if submission is not None:
        values = submission.instance
    else:
        values = draw_instance(problem, identity.username, assignment.id)

    attempts = submission.attempts if submission else 0
    return {
        "problem_id": problem.id,
        "title": problem.title,
        "text": render(problem.description, values),
        "unit": problem.unit,
        "tolerance_percent": problem.tolerance_percent,
        "max_attempts": problem.max_attempts,
        "attempts": attempts,
        "attempts_remaining": max(0, problem.max_attempts - attempts),
        "is_correct": submission.is_correct if submission else None,
        "status": submission_status(submission, problem),
    }


def template_view(problem: Problem) -> dict:
    """A problem as its author sees it: the raw template, no instance drawn."""
    return {
        "problem_id": problem.id,
        "title": problem.title,
        "text": problem.description,
        "unit": problem.unit,
        "tolerance_percent": problem.tolerance_percent,
        "max_attempts": problem.max_attempts,
        "attempts": 0,
        "attempts_remaining": problem.max_attempts,
        "is_correct": None,
        "status": STATUS_TEMPLATE,
    }
