"""Roles endpoint: read-only listing for the user form's role picker."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.api.v1.errors import error_response
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.users import RolesResponse
from app.services.errors import QueryFailure
from app.services.roles import list_roles

router = APIRouter()


@router.get("", response_model=RolesResponse)
def get_roles(
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> RolesResponse | JSONResponse:
    """Return every role ({id, name, description}) ordered by id."""
    try:
        roles = list_roles(db)
    except QueryFailure as e:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch roles",
            error=e.message,
        )
    return RolesResponse(data=roles)
