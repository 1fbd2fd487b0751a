"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.infrastructure.activity_log_client import ActivityLogClient
from app.middleware.error_handler import ErrorHandlerMiddleware
from app.middleware.rate_limit import limiter
from app.api.v1.routers import trees

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Opens the activity log client on startup and closes it on shutdown.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Log store: {settings.log_store_base_url}")
    logger.info(f"Trend buckets: daily <= {settings.trend_daily_max_days}d, "
                f"weekly <= {settings.trend_weekly_max_days}d, monthly beyond")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    async with ActivityLogClient() as log_client:
        app.state.log_client = log_client
        yield
        logger.info("Shutting down application...")

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Yield History API for orchard record-keeping

    This API reconstructs the yield history of individual trees from their
    free-form activity logs and summarises it for charting.

    ## Features

    - **Yield Event Extraction**: Turns `yield_update` activity logs into
      ordered yield change events, from structured counts or from notes such
      as "จาก 10 ลูก เป็น 15 ลูก" and "from 10 to 15"
    - **Trend Series**: One point per day, week or month of the window,
      carrying the yield level forward through quiet periods
    - **Analytics**: Totals, averages, min/max yield level, velocity and
      least-squares growth rate
    - **Period Presets**: 7 days, 30 days, 90 days, 1 year and all time
    - **Robust Error Handling**: Automatic retries with exponential backoff for
      log store calls
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(trees.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
