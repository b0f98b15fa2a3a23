from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from physics_practice.core.deps import get_db
from physics_practice.core.errors import ValidationFailure
from physics_practice.core.permissions import require_teacher
from physics_practice.models.problem import Problem
from physics_practice.schemas.auth import Identity
from physics_practice.schemas.problem import ProblemCreate, ProblemRead, ProblemUpdate
from physics_practice.services.formula import CONSTANTS, FormulaError, free_names
from physics_practice.services.instances import validate_ranges

router = APIRouter()


def _ensure_problem_exists(db: Session, problem_id: int) -> Problem:
    p = db.query(Problem).filter(Problem.id == problem_id).first()
    if not p:
        raise HTTPException(status_code=404, detail="Problem not found")
    return p


def _validate_template(formula: str, variables: dict) -> None:
    """Reject formulas that don't parse or read undeclared variables."""
    validate_ranges(variables)
    try:
        names = free_names(formula)
    except FormulaError as e:
        raise ValidationFailure(f"Invalid formula: {e}") from e

    unknown = sorted(n for n in names if n not in variables and n not in CONSTANTS)
    if unknown:
        raise ValidationFailure(f"Formula uses undeclared variables: {', '.join(unknown)}")


@router.get("", response_model=list[ProblemRead])
def list_problems(
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    return db.query(Problem).order_by(Problem.id.asc()).all()


@router.post("", response_model=ProblemRead, status_code=status.HTTP_201_CREATED)
def create_problem(
    payload: ProblemCreate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    data = payload.model_dump()
    _validate_template(data["formula"], data["variables"])

    p = Problem(**data)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@router.get("/{problem_id}", response_model=ProblemRead)
def get_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    return _ensure_problem_exists(db, problem_id)


@router.patch("/{problem_id}", response_model=ProblemRead)
def update_problem(
    problem_id: int,
    payload: ProblemUpdate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    p = _ensure_problem_exists(db, problem_id)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    formula = changes.get("formula", p.formula)
    variables = changes.get("variables", p.variables)
    _validate_template(formula, variables)

    # frozen instances on existing submissions are left alone
    for field, value in changes.items():
        setattr(p, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(p)
    return p


@router.delete("/{problem_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_problem(
    problem_id: int,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    p = _ensure_problem_exists(db, problem_id)
    db.delete(p)
    db.commit()
