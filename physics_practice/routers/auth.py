import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from physics_practice.core.config import ACCESS_TOKEN_EXPIRE, COOKIE_SECURE, SESSION_COOKIE_NAME
from physics_practice.core.current_user import get_current_user
from physics_practice.core.deps import get_db
from physics_practice.core.security import create_access_token, verify_password
from physics_practice.models.user import User
from physics_practice.schemas.auth import Identity, LoginRequest
from physics_practice.schemas.token import Token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid username or password"},
    },
)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info("Failed login for %r", payload.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    access_token = create_access_token(
        data={"sub": user.username, "role": user.role},
        expires_delta=ACCESS_TOKEN_EXPIRE,
    )

    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=access_token,
        max_age=int(ACCESS_TOKEN_EXPIRE.total_seconds()),
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="none" if COOKIE_SECURE else "lax",
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": {"username": user.username, "role": user.role},
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)


@router.get("/me", response_model=Identity)
def me(current_user: Identity = Depends(get_current_user)):
    return current_user
