"""Pydantic schemas for user payloads, immutable user records and API envelopes."""

from datetime import datetime
from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from app.models.user import EMAIL_MAX_LEN, FULL_NAME_MAX_LEN

# Wire format for every timestamp in API responses.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Largest id a signed 64-bit integer column can hold.
ID_MAX = 2**63 - 1

RoleId = Annotated[int, Field(ge=1, le=ID_MAX)]


def format_timestamp(value: datetime) -> str:
    """Render a stored timestamp as YYYY-MM-DD HH:MM:SS (stored timezone, offset dropped)."""
    return value.strftime(TIMESTAMP_FORMAT)


def _check_email_format(value: str) -> str:
    # Syntax only; the address is stored exactly as given.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise PydanticCustomError(
            "email_format",
            "value is not a valid email address: {reason}",
            {"reason": str(e)},
        ) from e
    return value


EmailAddress = Annotated[
    str,
    Field(max_length=EMAIL_MAX_LEN),
    AfterValidator(_check_email_format),
]


class UserCreate(BaseModel):
    """Body for creating a user: every field required, at least one role id."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    full_name: str = Field(..., min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: EmailAddress
    roles: list[RoleId] = Field(..., min_length=1, description="Role ids to attach")


class UserUpdate(BaseModel):
    """
    Body for a partial update. Omitted fields keep their stored values.

    A field that is present must satisfy the create rules; explicit null is rejected.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    full_name: str | None = Field(default=None, min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: EmailAddress | None = None
    roles: list[RoleId] | None = Field(default=None, min_length=1)

    @field_validator("full_name", "email", "roles")
    @classmethod
    def reject_null(cls, v: object) -> object:
        # Only runs for keys present in the payload (defaults are not validated).
        if v is None:
            raise PydanticCustomError("null_value", "Field may not be null")
        return v


class RoleRecord(BaseModel):
    """Role as listed by the role directory."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    description: str | None = None


class UserSummary(BaseModel):
    """User entry inside a role group."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    full_name: str
    email: str
    created_at: datetime


class RoleGroup(BaseModel):
    """All users attached to one role. A user with several roles appears in several groups."""

    model_config = ConfigDict(frozen=True)

    role: str
    users: tuple[UserSummary, ...] = ()


class UserRecord(BaseModel):
    """Immutable snapshot of a user and the names of its roles."""

    model_config = ConfigDict(frozen=True)

    id: int
    full_name: str
    email: str
    roles: tuple[str, ...]
    created_at: datetime
    updated_at: datetime


# --- API payloads (timestamps already rendered as strings) ---


class GroupMemberData(BaseModel):
    id: int
    full_name: str
    email: str
    created_at: str

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "GroupMemberData":
        return cls(
            id=summary.id,
            full_name=summary.full_name,
            email=summary.email,
            created_at=format_timestamp(summary.created_at),
        )


class RoleGroupData(BaseModel):
    role: str
    users: list[GroupMemberData]

    @classmethod
    def from_group(cls, group: RoleGroup) -> "RoleGroupData":
        return cls(role=group.role, users=[GroupMemberData.from_summary(u) for u in group.users])


class UserData(BaseModel):
    """User payload for create and show responses."""

    id: int
    full_name: str
    email: str
    roles: list[str]
    created_at: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserData":
        return cls(
            id=record.id,
            full_name=record.full_name,
            email=record.email,
            roles=list(record.roles),
            created_at=format_timestamp(record.created_at),
        )


class UpdatedUserData(UserData):
    """User payload for update responses (adds updated_at)."""

    updated_at: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UpdatedUserData":
        return cls(
            id=record.id,
            full_name=record.full_name,
            email=record.email,
            roles=list(record.roles),
            created_at=format_timestamp(record.created_at),
            updated_at=format_timestamp(record.updated_at),
        )


class UserGroupsResponse(BaseModel):
    """Response for GET /users."""

    success: bool = True
    data: list[RoleGroupData]


class UserResponse(BaseModel):
    """Response for POST /users and GET /users/{id}."""

    success: bool = True
    message: str | None = None
    data: UserData


class UpdatedUserResponse(BaseModel):
    """Response for PUT/PATCH /users/{id}."""

    success: bool = True
    message: str
    data: UpdatedUserData


class RolesResponse(BaseModel):
    """Response for GET /roles."""

    success: bool = True
    data: list[RoleRecord]


class MessageResponse(BaseModel):
    """Success envelope without data (DELETE)."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Failure envelope: error carries a raw detail, errors carries field messages."""

    success: bool = False
    message: str
    error: str | None = None
    errors: dict[str, list[str]] | None = None
