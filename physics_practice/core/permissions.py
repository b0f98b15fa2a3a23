from fastapi import Depends, HTTPException, status

from physics_practice.core.current_user import get_current_user
from physics_practice.models.user import ROLE_STUDENT, ROLE_TEACHER
from physics_practice.schemas.auth import Identity


def require_teacher(current_user: Identity = Depends(get_current_user)) -> Identity:
    if current_user.role != ROLE_TEACHER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher role required",
        )
    return current_user


def require_student(current_user: Identity = Depends(get_current_user)) -> Identity:
    if current_user.role != ROLE_STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student role required",
        )
    return current_user
