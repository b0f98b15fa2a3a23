from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from physics_practice.core.current_user import get_current_user
from physics_practice.core.deps import get_db
from physics_practice.core.permissions import require_student
from physics_practice.models.problem import Problem
from physics_practice.models.submission import Submission
from physics_practice.models.user import ROLE_TEACHER
from physics_practice.schemas.auth import Identity
from physics_practice.schemas.submission import SubmissionRead, SubmitAnswerRequest
from physics_practice.services.submissions import attach_computed_fields, submit_answer

router = APIRouter()


@router.post(
    "/submit-answer",
    response_model=SubmissionRead,
    responses={
        400: {"description": "Malformed answer"},
        404: {"description": "Assignment or problem not found"},
        409: {"description": "Already solved or out of attempts"},
        422: {"description": "Problem cannot be graded"},
    },
)
def submit(
    payload: SubmitAnswerRequest,
    db: Session = Depends(get_db),
    me: Identity = Depends(require_student),
):
    submission, problem = submit_answer(
        db,
        me,
        payload.assignment_id,
        payload.problem_id,
        payload.answer,
    )
    return attach_computed_fields(submission, problem)


@router.get("/submissions", response_model=list[SubmissionRead])
def list_submissions(
    assignment_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    """Teachers see every submission; students only their own."""
    q = db.query(Submission, Problem).join(Problem, Problem.id == Submission.problem_id)

    if current_user.role != ROLE_TEACHER:
        q = q.filter(Submission.student_username == current_user.username)
    if assignment_id is not None:
        q = q.filter(Submission.assignment_id == assignment_id)

    rows = q.order_by(Submission.student_username.asc(), Submission.assignment_id.asc(), Submission.problem_id.asc()).all()
    return [attach_computed_fields(s, p) for s, p in rows]
