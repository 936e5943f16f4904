"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

API_VERSION = "1.0.0"

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Return service status, environment and whether the database answers."""
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        version=API_VERSION,
        database="connected" if check_db_connected(db) else "disconnected",
    )
