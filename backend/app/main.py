# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .core.request_context import attach_request_id_filter
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .middleware.request_id import RequestIdMiddleware
from .routes.v1 import (
    bookings as bookings_v1,
    guides as guides_v1,
    health as health_v1,
    prometheus as prometheus_v1,
    trips as trips_v1,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
attach_request_id_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment} (site_mode={settings.site_mode})")
    logger.info(f"Slot lock backend: {settings.booking_lock_backend}")
    if settings.is_production_database() and settings.environment != "production":
        logger.warning("Production database configured outside a production environment")

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestIdMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Mount v1 routes
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(trips_v1.router, prefix="/trips")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(guides_v1.router, prefix="/guides")

app.include_router(api_v1)

# Infrastructure routes (intentionally unversioned)
app.include_router(prometheus_v1.router)


@app.get("/")
def read_root() -> dict[str, str]:
    """Root endpoint - API information"""
    return {
        "message": f"Welcome to the {BRAND_NAME} API",
        "version": API_VERSION,
        "docs": "/docs",
    }
