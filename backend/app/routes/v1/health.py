# backend/app/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.config import settings
from app.core.constants import API_VERSION, BRAND_NAME
from app.schemas.health import HealthLiteResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _database_status(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
        return "ok"
    except SQLAlchemyError as exc:
        logger.error(f"Health check database probe failed: {exc}")
        return "error"


@router.get("", response_model=HealthResponse)
def health_check(response: Response, db: Session = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health status including service info, environment and
    database reachability. Used by load balancers and monitoring systems.
    """
    database = _database_status(db)
    if database != "ok":
        response.status_code = 503
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        service=f"{BRAND_NAME.lower()}-api",
        version=API_VERSION,
        environment=settings.environment,
        database=database,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/lite", response_model=HealthLiteResponse)
def health_check_lite() -> HealthLiteResponse:
    """
    Lightweight health check that doesn't hit database.

    Use this for high-frequency health probes.
    """
    return HealthLiteResponse(status="ok")
