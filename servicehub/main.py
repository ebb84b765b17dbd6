# servicehub/main.py
"""
ServiceHub API application.

Mounts the v1 routers under /api/v1, the Prometheus endpoint, the uploads
static directory and the health/root endpoints. The lifespan owns the
shared Broadcaster connection.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .api.dependencies.services import get_stats_service
from .core.broadcast import connect_broadcast, disconnect_broadcast
from .core.config import settings
from .core.constants import API_VERSION, BRAND_NAME, UPLOADS_URL_PREFIX
from .core.exceptions import DomainException, handle_domain_exception
from .core.redis import close_redis_client
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .middleware.rate_limiter import RateLimitMiddleware
from .middleware.timing import TimingMiddleware
from .routes import prometheus
from .routes.v1 import (
    admin as admin_v1,
    auth as auth_v1,
    bookings as bookings_v1,
    chat as chat_v1,
    payments as payments_v1,
    providers as providers_v1,
    realtime as realtime_v1,
)
from .schemas.admin import PlatformStatsResponse
from .schemas.common import HealthResponse, RootResponse
from .services.stats_service import StatsService

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")

    Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)
    await connect_broadcast()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")
    await disconnect_broadcast()
    close_redis_client()


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Home-services marketplace: providers, bookings, chat and payments",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

# Added last runs first: CORS wraps everything, then rate limiting
app.add_middleware(TimingMiddleware)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s", settings.cors_origins)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth_v1.router, prefix="/auth")
api_v1.include_router(providers_v1.router, prefix="/providers")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(chat_v1.router, prefix="/chat")
api_v1.include_router(payments_v1.router, prefix="/payments")
api_v1.include_router(admin_v1.router, prefix="/admin")
api_v1.include_router(realtime_v1.router, prefix="/realtime")


@api_v1.get("/stats", response_model=PlatformStatsResponse, tags=["public"])
async def get_public_stats(
    stats_service: StatsService = Depends(get_stats_service),
) -> PlatformStatsResponse:
    try:
        stats = await asyncio.to_thread(stats_service.platform_stats)
    except DomainException as e:
        handle_domain_exception(e)
    return PlatformStatsResponse(**stats)


app.include_router(api_v1)
app.include_router(prometheus.router)

# The directory is created by the lifespan
app.mount(
    UPLOADS_URL_PREFIX,
    StaticFiles(directory=settings.uploads_dir, check_dir=False),
    name="uploads",
)


@app.get("/", response_model=RootResponse)
def read_root() -> RootResponse:
    """Root endpoint - API information"""
    return RootResponse(
        message=f"Welcome to the {BRAND_NAME} API",
        version=API_VERSION,
        docs="/docs",
        environment=settings.environment,
        endpoints={
            "auth": "/api/v1/auth",
            "providers": "/api/v1/providers",
            "bookings": "/api/v1/bookings",
            "chat": "/api/v1/chat",
            "payments": "/api/v1/payments",
            "admin": "/api/v1/admin",
            "realtime": "/api/v1/realtime",
            "health": "/health",
        },
    )


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
