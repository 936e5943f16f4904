"""Shared fixtures: a fresh in-memory database with the default roles seeded."""

import unittest

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import build_engine
from app.models import Base, Role, User, user_roles
from app.services.roles import seed_roles


class DatabaseTestCase(unittest.TestCase):
    """Each test gets its own in-memory SQLite database and session."""

    def setUp(self) -> None:
        self.engine = build_engine("sqlite://", poolclass=StaticPool)
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.session_factory()
        seed_roles(self.db)
        self.role_ids = {name: rid for rid, name in self.db.query(Role.id, Role.name).all()}

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def user_count(self) -> int:
        return self.db.query(User).count()

    def association_rows(self, user_id: int) -> list[int]:
        """Role ids linked to user_id straight from user_roles."""
        rows = self.db.execute(
            select(user_roles.c.role_id)
            .where(user_roles.c.user_id == user_id)
            .order_by(user_roles.c.role_id)
        )
        return [role_id for (role_id,) in rows]

    def association_count(self) -> int:
        return self.db.execute(select(func.count()).select_from(user_roles)).scalar_one()
