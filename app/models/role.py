"""ORM model for roles users can be attached to."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.models.user_role import user_roles


class Role(Base):
    """
    Named role (Author, Editor, ...). Seeded at startup; read-only over the API.

    users: every user attached through user_roles, ordered by user id.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
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

    users = relationship(
        "User",
        secondary=user_roles,
        back_populates="roles",
        order_by="User.id",
        passive_deletes=True,
    )
