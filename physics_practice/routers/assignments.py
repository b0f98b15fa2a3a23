from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from physics_practice.core.current_user import get_current_user
from physics_practice.core.deps import get_db
from physics_practice.core.errors import ValidationFailure
from physics_practice.core.permissions import require_teacher
from physics_practice.models.assignment import Assignment
from physics_practice.models.problem import Problem
from physics_practice.models.user import ROLE_TEACHER
from physics_practice.schemas.assignment import (
    AssignmentCreate,
    AssignmentProblemView,
    AssignmentRead,
    AssignmentUpdate,
)
from physics_practice.schemas.auth import Identity
from physics_practice.services.submissions import problem_view, template_view

router = APIRouter()


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def _ensure_problems_exist(db: Session, problem_ids: list[int]) -> None:
    found = {pid for (pid,) in db.query(Problem.id).filter(Problem.id.in_(problem_ids)).all()}
    missing = [pid for pid in problem_ids if pid not in found]
    if missing:
        raise ValidationFailure(f"Unknown problem ids: {missing}")


def _assignment_order_by():
    """Soonest due first, then id (stable tie-break)."""
    return (Assignment.due_date.asc(), Assignment.id.asc())


@router.get("", response_model=list[AssignmentRead])
def list_assignments(
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    return db.query(Assignment).order_by(*_assignment_order_by()).all()


@router.post("", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    _ensure_problems_exist(db, payload.problem_ids)

    a = Assignment(
        title=payload.title,
        description=payload.description,
        problem_ids=list(payload.problem_ids),
        due_date=payload.due_date,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@router.get("/{assignment_id}", response_model=AssignmentRead)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    return _ensure_assignment_exists(db, assignment_id)


@router.get("/{assignment_id}/problems", response_model=list[AssignmentProblemView])
def list_assignment_problems(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: Identity = Depends(get_current_user),
):
    a = _ensure_assignment_exists(db, assignment_id)

    problems = {p.id: p for p in db.query(Problem).filter(Problem.id.in_(a.problem_ids)).all()}

    # keep the assignment's order; skip problems deleted since
    ordered = [problems[pid] for pid in a.problem_ids if pid in problems]

    if current_user.role == ROLE_TEACHER:
        return [template_view(p) for p in ordered]
    return [problem_view(db, current_user, a, p) for p in ordered]


@router.patch("/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    a = _ensure_assignment_exists(db, assignment_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    if "problem_ids" in changes:
        _ensure_problems_exist(db, changes["problem_ids"])

    for field, value in changes.items():
        setattr(a, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    return a


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    a = _ensure_assignment_exists(db, assignment_id)
    db.delete(a)
    db.commit()
