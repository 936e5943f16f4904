"""ORM model for managed users."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.models.user_role import user_roles

FULL_NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255


class User(Base):
    """
    Managed user with one or more roles.

    email is unique across all users (exact, case-sensitive match).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(FULL_NAME_MAX_LEN), nullable=False)
    email = Column(String(EMAIL_MAX_LEN), nullable=False, unique=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    roles = relationship(
        "Role",
        secondary=user_roles,
        back_populates="users",
        order_by="Role.id",
        passive_deletes=True,
    )
