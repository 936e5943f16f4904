"""User repository: validated CRUD over users and their role associations.

Every mutation runs as one transaction on the given session: it commits once
or rolls back entirely. Callers only ever receive immutable records.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models import Role, User, user_roles
from app.schemas.users import ID_MAX, RoleGroup, UserCreate, UserRecord, UserSummary, UserUpdate
from app.services.errors import NotFound, QueryFailure, StorageFailure, ValidationFailure
from app.services.validation import (
    BODY_NOT_OBJECT,
    EMAIL_TAKEN,
    has_errors_for,
    invalid_role_message,
    merge_errors,
    messages_from_errors,
)

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found"


def _to_record(user: User, role_names: list[str] | None = None) -> UserRecord:
    if role_names is None:
        role_names = [role.name for role in user.roles]
    return UserRecord(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        roles=tuple(role_names),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _store_errors(
    db: Session,
    data: UserCreate | UserUpdate,
    exclude_user_id: int | None,
) -> dict[str, list[str]]:
    """Rules that need the database: email not taken, every role id exists."""
    errors: dict[str, list[str]] = {}
    fields = data.model_fields_set

    if "email" in fields and data.email is not None:
        query = db.query(User.id).filter(User.email == data.email)
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        if query.first() is not None:
            errors["email"] = [EMAIL_TAKEN]

    if "roles" in fields and data.roles:
        known = {rid for (rid,) in db.query(Role.id).filter(Role.id.in_(data.roles)).all()}
        for index, role_id in enumerate(data.roles):
            if role_id not in known:
                errors[f"roles.{index}"] = [invalid_role_message(index)]
    return errors


def _validate(
    db: Session,
    payload: Mapping[str, Any],
    *,
    partial: bool,
    exclude_user_id: int | None = None,
) -> UserCreate | UserUpdate:
    """
    Check every rule and raise one ValidationFailure listing all violations.

    Shape errors (pydantic) and store errors (uniqueness, role existence) are
    collected together; store rules only run for fields whose shape is valid.
    Nothing is written here.
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailure({"body": [BODY_NOT_OBJECT]})

    schema = UserUpdate if partial else UserCreate
    shape_errors: dict[str, list[str]] = {}
    try:
        data: UserCreate | UserUpdate = schema.model_validate(payload)
    except ValidationError as e:
        shape_errors = messages_from_errors(e.errors())
        # Re-parse only the well-formed fields so their store rules still run.
        well_formed = {
            field: payload[field]
            for field in UserUpdate.model_fields
            if field in payload and not has_errors_for(shape_errors, field)
        }
        data = UserUpdate.model_validate(well_formed)

    try:
        store_errors = _store_errors(db, data, exclude_user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to check stored users and roles")
        raise StorageFailure(str(e)) from e

    errors = merge_errors(shape_errors, store_errors)
    if errors:
        raise ValidationFailure(errors)
    return data


def _load_roles(db: Session, role_ids: list[int]) -> list[Role]:
    """Roles for the given ids, in the given order, duplicates dropped."""
    ordered = list(dict.fromkeys(role_ids))
    by_id = {role.id: role for role in db.query(Role).filter(Role.id.in_(ordered)).all()}
    return [by_id[rid] for rid in ordered]


def _get_user_row(db: Session, user_id: int) -> User:
    if not 1 <= user_id <= ID_MAX:
        # No row can carry an id outside the column range.
        raise NotFound(f"No user with id {user_id}")
    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.exception("Failed to load user id=%s", user_id)
        raise QueryFailure(str(e)) from e
    if user is None:
        raise NotFound(f"No user with id {user_id}")
    return user


def list_users_grouped_by_role(db: Session) -> list[RoleGroup]:
    """
    One group per role (role id order) listing every attached user (user id order).

    A user with several roles is listed once in each of their groups.
    """
    try:
        roles = (
            db.query(Role)
            .options(selectinload(Role.users))
            .order_by(Role.id)
            .all()
        )
        return [
            RoleGroup(
                role=role.name,
                users=tuple(UserSummary.model_validate(user) for user in role.users),
            )
            for role in roles
        ]
    except SQLAlchemyError as e:
        logger.exception("Failed to list users by role")
        raise QueryFailure(str(e)) from e


def create_user(db: Session, payload: Mapping[str, Any]) -> UserRecord:
    """
    Validate and insert a user with its role associations in one transaction.

    payload: {"full_name": str, "email": str, "roles": [role_id, ...]}.
    Returned role names follow the order the ids were given.
    """
    data = _validate(db, payload, partial=False)

    try:
        roles = _load_roles(db, data.roles)
        user = User(full_name=data.full_name, email=data.email, roles=roles)
        db.add(user)
        db.commit()
        db.refresh(user)
        record = _to_record(user, [role.name for role in roles])
    except SQLAlchemyError as e:
        # Typically a concurrent insert won the unique email index.
        db.rollback()
        logger.exception("Failed to create user")
        raise StorageFailure(str(e)) from e

    logger.info("Created user id=%s roles=%s", record.id, list(record.roles))
    return record


def get_user(db: Session, user_id: int) -> UserRecord:
    """Return the user and its role names (role id order). Raises NotFound."""
    user = _get_user_row(db, user_id)
    try:
        return _to_record(user)
    except SQLAlchemyError as e:
        logger.exception("Failed to load roles for user id=%s", user_id)
        raise QueryFailure(str(e)) from e


def update_user(db: Session, user_id: int, payload: Mapping[str, Any]) -> UserRecord:
    """
    Partially update a user. Omitted fields keep their values.

    When "roles" is present the role set is replaced by exactly those ids;
    when it is absent the role set is left untouched.
    """
    user = _get_user_row(db, user_id)
    data = _validate(db, payload, partial=True, exclude_user_id=user_id)
    fields = data.model_fields_set

    try:
        if "full_name" in fields:
            user.full_name = data.full_name
        if "email" in fields:
            user.email = data.email
        if "roles" in fields:
            # Collection assignment adds and removes user_roles rows as needed.
            user.roles = _load_roles(db, data.roles)
        if fields:
            user.updated_at = func.now()
        db.commit()
        db.refresh(user)
        record = _to_record(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to update user id=%s", user_id)
        raise StorageFailure(str(e)) from e

    logger.info("Updated user id=%s fields=%s", user_id, sorted(fields))
    return record


def delete_user(db: Session, user_id: int) -> None:
    """Delete the user's association rows, then the user, in one transaction."""
    _get_user_row(db, user_id)

    try:
        db.execute(delete(user_roles).where(user_roles.c.user_id == user_id))
        db.execute(delete(User).where(User.id == user_id))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to delete user id=%s", user_id)
        raise StorageFailure(str(e)) from e

    logger.info("Deleted user id=%s", user_id)
