"""Role directory: read-only role listing plus idempotent seeding of the default roles."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Role
from app.schemas.users import RoleRecord
from app.services.errors import QueryFailure, StorageFailure

logger = logging.getLogger(__name__)

# Seeded at startup, in this order; a role whose name already exists is left alone.
DEFAULT_ROLES: tuple[tuple[str, str], ...] = (
    ("Author", "Content author role"),
    ("Editor", "Content editor role"),
    ("Subscriber", "Basic subscriber role"),
    ("Administrator", "Administrator role"),
)


def list_roles(db: Session) -> list[RoleRecord]:
    """Return every role ordered by id."""
    try:
        roles = db.query(Role).order_by(Role.id).all()
    except SQLAlchemyError as e:
        logger.exception("Failed to list roles")
        raise QueryFailure(str(e)) from e
    return [RoleRecord.model_validate(role) for role in roles]


def seed_roles(db: Session) -> int:
    """
    Insert any missing default roles by name and commit.

    Returns the number of roles inserted; 0 when all already exist.
    """
    try:
        existing = {name for (name,) in db.query(Role.name).all()}
        missing = [(name, description) for name, description in DEFAULT_ROLES if name not in existing]
        if missing:
            db.add_all(Role(name=name, description=description) for name, description in missing)
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to seed roles")
        raise StorageFailure(str(e)) from e

    if missing:
        logger.info("Seeded roles: %s", ", ".join(name for name, _ in missing))
    return len(missing)
