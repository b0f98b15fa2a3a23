from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from physics_practice.core.deps import get_db
from physics_practice.core.permissions import require_teacher
from physics_practice.core.security import hash_password
from physics_practice.models.user import ROLE_STUDENT, User
from physics_practice.schemas.auth import Identity
from physics_practice.schemas.user import PasswordUpdate, StudentCreate, UserRead

router = APIRouter()


def _ensure_student_exists(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username == username, User.role == ROLE_STUDENT).first()
    if not user:
        raise HTTPException(status_code=404, detail="Student not found")
    return user


@router.get("", response_model=list[UserRead])
def list_students(
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    return db.query(User).filter(User.role == ROLE_STUDENT).order_by(User.username.asc()).all()


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "Username already taken"},
    },
)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    user = User(
        username=payload.username,
        hashed_password=hash_password(payload.password),
        role=ROLE_STUDENT,
    )
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Username already taken")

    db.refresh(user)
    return user


@router.put("/{username}/password", response_model=UserRead)
def reset_student_password(
    username: str,
    payload: PasswordUpdate,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    user = _ensure_student_exists(db, username)
    user.hashed_password = hash_password(payload.password)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{username}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    username: str,
    db: Session = Depends(get_db),
    teacher: Identity = Depends(require_teacher),
):
    user = _ensure_student_exists(db, username)
    db.delete(user)
    db.commit()
