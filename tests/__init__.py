"""Test package. Point settings at in-memory SQLite before any app module is imported."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_ROLES_ON_STARTUP", "false")
os.environ.setdefault("AUTH_ENABLED", "false")
