from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from app.core.limits import limiter, rate_limit_handler
from app.core.init_db import init_database
from app.core.error_handlers import setup_exception_handlers
from app.core.database import db_manager
from app.core.middleware import setup_middleware
from app.core.logging_utils import (
    setup_logging,
    get_logger,
    log_business_event,
    error_tracker,
)
from app.core.config import (
    validate_config,
    APP_NAME,
    APP_VERSION,
    DEBUG,
    LOG_LEVEL,
    LOG_FORMAT,
    CORS_ORIGINS,
    EXPIRY_SWEEPER_ENABLED,
)

from app.turf.routers import (
    courts_router,
    bookings_router,
    payments_router,
    recurring_router,
    settings_router,
    calendar_router,
)
from app.turf.services.expiry_sweeper import expiry_sweeper

setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Старт: конфиг, БД, фоновый sweeper. Остановка: sweeper, соединения"""
    logger.info(f"Starting {APP_NAME} v{APP_VERSION}")

    try:
        validate_config()
        logger.info("✅ Configuration validated")

        await db_manager.check_connection()
        logger.info("✅ Database connection established")

        await init_database()
        logger.info("✅ Database initialized")

        if EXPIRY_SWEEPER_ENABLED:
            expiry_sweeper.start()

        log_business_event(
            "application_started",
            "system",
            0,
            {
                "version": APP_VERSION,
                "environment": "development" if DEBUG else "production",
                "expiry_sweeper": EXPIRY_SWEEPER_ENABLED,
            },
        )
        logger.info("🚀 Application startup completed")

    except Exception as e:
        logger.error(f"❌ Application startup failed: {str(e)}")
        error_tracker.track_error(
            "STARTUP_ERROR",
            str(e),
            {"component": "application_startup", "version": APP_VERSION},
        )
        raise

    yield

    logger.info("🛑 Shutting down application...")
    try:
        await expiry_sweeper.stop()
        await db_manager.close_connections()
        logger.info("✅ Database connections closed")
    except Exception as e:
        logger.error(f"❌ Error during shutdown: {str(e)}")

    logger.info("👋 Application shutdown completed")


app = FastAPI(
    title=APP_NAME,
    description="Court and turf booking: courts, slots, one-off and recurring bookings, payments",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

setup_middleware(
    app,
    {
        "slow_request_threshold": 5.0,
        "exclude_paths": [
            "/health",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/favicon.ico",
        ],
    },
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.include_router(courts_router, prefix="/api/v1")
app.include_router(bookings_router, prefix="/api/v1")
app.include_router(payments_router, prefix="/api/v1")
app.include_router(recurring_router, prefix="/api/v1")
app.include_router(settings_router, prefix="/api/v1")
app.include_router(calendar_router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health():
    """Liveness plus whether the expiry sweeper task is running"""
    return {
        "status": "ok",
        "service": APP_NAME,
        "version": APP_VERSION,
        "expiry_sweeper": "running" if expiry_sweeper.is_running else "stopped",
    }
