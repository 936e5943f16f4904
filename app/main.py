"""FastAPI application entrypoint. No business logic; only wiring, middleware and startup seeding."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import auth
from app.api.v1 import router as v1_router
from app.api.v1.errors import request_validation_handler
from app.api.v1.health import API_VERSION
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.errors import StorageFailure
from app.services.roles import seed_roles

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Seed the default roles once at startup when enabled."""
    if settings.SEED_ROLES_ON_STARTUP:
        db = SessionLocal()
        try:
            inserted = seed_roles(db)
            logger.info("Startup role seeding done: inserted=%s", inserted)
        except StorageFailure:
            logger.error("Startup role seeding failed; run `alembic upgrade head` and restart.")
        finally:
            db.close()
    yield


app = FastAPI(
    title="Roster API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, request_validation_handler)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["auth"])


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Roster API"}
