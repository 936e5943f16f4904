"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser
from app.schemas.health import HealthResponse
from app.schemas.users import (
    ErrorResponse,
    MessageResponse,
    RoleGroup,
    RoleGroupData,
    RoleRecord,
    RolesResponse,
    UpdatedUserData,
    UpdatedUserResponse,
    UserCreate,
    UserData,
    UserGroupsResponse,
    UserRecord,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "RoleGroup",
    "RoleGroupData",
    "RoleRecord",
    "RolesResponse",
    "UpdatedUserData",
    "UpdatedUserResponse",
    "UserCreate",
    "UserData",
    "UserGroupsResponse",
    "UserRecord",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
]
