"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.role import Role
from app.models.user import User
from app.models.user_role import user_roles

__all__ = ["Base", "Role", "User", "user_roles"]
