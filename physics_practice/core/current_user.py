from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from physics_practice.core.config import SESSION_COOKIE_NAME
from physics_practice.core.security import decode_access_token
from physics_practice.schemas.auth import Identity

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> Identity:
    """
    Identity from an Authorization: Bearer header or the session cookie.

    The signed claims are trusted as-is; the users table is not consulted.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = bearer or request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise credentials_exception

    claims = decode_access_token(token)
    if not claims or not claims.get("sub") or not claims.get("role"):
        raise credentials_exception

    return Identity(username=claims["sub"], role=claims["role"])
