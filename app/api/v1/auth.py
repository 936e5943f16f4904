"""Authenticated-caller capability (get_current_user) and the placeholder /user endpoint."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import decode_access_token
from app.models import User
from app.schemas.auth import CurrentUser

router = APIRouter()
security = HTTPBearer(auto_error=False)

# Returned when AUTH_ENABLED is false so routes still receive a caller.
ANONYMOUS_ADMIN = CurrentUser(id=0, full_name="Local Admin", email="admin@localhost")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """
    Dependency: return the calling user.

    With AUTH_ENABLED=false no token is required and a synthetic caller is returned.
    Otherwise a Bearer JWT whose sub is an existing user id is required (401 if not).
    """
    if not settings.AUTH_ENABLED:
        return ANONYMOUS_ADMIN
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized("User not found")
    return CurrentUser.model_validate(user)


@router.get("/user", response_model=CurrentUser)
def read_current_user(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Return the authenticated caller."""
    return current_user
