"""Users endpoints: list grouped by role, create, show, update, delete.

Service errors are translated here into the {success: false, ...} envelope:
ValidationFailure -> 422, NotFound -> 404, StorageFailure/QueryFailure -> 500.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.api.v1.errors import error_response, validation_error_response
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.users import (
    MessageResponse,
    RoleGroupData,
    UpdatedUserData,
    UpdatedUserResponse,
    UserData,
    UserGroupsResponse,
    UserResponse,
)
from app.services import users as user_service
from app.services.errors import NotFound, QueryFailure, StorageFailure, ValidationFailure

router = APIRouter()

UserPayload = Annotated[
    dict[str, Any],
    Body(
        openapi_examples={
            "create": {
                "summary": "Create or replace",
                "value": {"full_name": "Jane Doe", "email": "jane@example.com", "roles": [1, 2]},
            },
            "partial": {
                "summary": "Partial update",
                "value": {"roles": [3]},
            },
        },
    ),
]


def _not_found(e: NotFound) -> JSONResponse:
    return error_response(
        status.HTTP_404_NOT_FOUND,
        user_service.USER_NOT_FOUND,
        error=e.message,
    )


def _server_error(message: str, e: StorageFailure | QueryFailure) -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message,
        error=e.message,
    )


@router.get("", response_model=UserGroupsResponse)
def list_users(
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserGroupsResponse | JSONResponse:
    """
    Return users grouped by role: one {role, users} entry per role.

    A user with several roles is listed under each of them.
    """
    try:
        groups = user_service.list_users_grouped_by_role(db)
    except QueryFailure as e:
        return _server_error("Failed to fetch users", e)
    return UserGroupsResponse(data=[RoleGroupData.from_group(g) for g in groups])


@router.post(
    "",
    response_model=UserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserPayload,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserResponse | JSONResponse:
    """Create a user with full_name, email and at least one role id."""
    try:
        record = user_service.create_user(db, payload)
    except ValidationFailure as e:
        return validation_error_response(e.errors)
    except StorageFailure as e:
        return _server_error("Failed to create user", e)
    return UserResponse(
        message="User created successfully",
        data=UserData.from_record(record),
    )


@router.get("/{user_id}", response_model=UserResponse, response_model_exclude_none=True)
def show_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserResponse | JSONResponse:
    """Return one user with its role names."""
    try:
        record = user_service.get_user(db, user_id)
    except NotFound as e:
        return _not_found(e)
    except QueryFailure as e:
        return _server_error("Failed to fetch user", e)
    return UserResponse(data=UserData.from_record(record))


@router.api_route(
    "/{user_id}",
    methods=["PUT", "PATCH"],
    response_model=UpdatedUserResponse,
)
def update_user(
    user_id: int,
    payload: UserPayload,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UpdatedUserResponse | JSONResponse:
    """
    Partially update a user. Any subset of full_name, email and roles may be sent.

    Sending roles replaces the whole role set; omitting it keeps the current roles.
    """
    try:
        record = user_service.update_user(db, user_id, payload)
    except NotFound as e:
        return _not_found(e)
    except ValidationFailure as e:
        return validation_error_response(e.errors)
    except (StorageFailure, QueryFailure) as e:
        return _server_error("Failed to update user", e)
    return UpdatedUserResponse(
        message="User updated successfully",
        data=UpdatedUserData.from_record(record),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    _user: Annotated[CurrentUser, Depends(get_current_user)],
) -> MessageResponse | JSONResponse:
    """Delete a user and detach all of its roles."""
    try:
        user_service.delete_user(db, user_id)
    except NotFound as e:
        return _not_found(e)
    except (StorageFailure, QueryFailure) as e:
        return _server_error("Failed to delete user", e)
    return MessageResponse(message="User deleted successfully")
