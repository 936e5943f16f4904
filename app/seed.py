"""
CLI entrypoint for seeding the default roles (Author, Editor, Subscriber, Administrator):

  python -m app.seed

Safe to run repeatedly; existing role names are never duplicated.
"""

import logging
import sys

from app.core.database import SessionLocal
from app.services.errors import StorageFailure
from app.services.roles import seed_roles

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Insert missing default roles."""
    db = SessionLocal()
    try:
        inserted = seed_roles(db)
        logger.info("Role seeding completed: roles_inserted=%s", inserted)
        return 0
    except StorageFailure as e:
        logger.error("Role seeding failed: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
