import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv


# Load .env FIRST before any other imports that might need env vars
PROJECT_DIR = Path(__file__).parent.parent
ENV_PATH = PROJECT_DIR / ".env"
load_dotenv(ENV_PATH)

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import Request

from questlog.achievements.router import router as achievements_router
from questlog.auth.router import router as auth_router
from questlog.auth.security import get_session_signing_key
from questlog.config.logging import setup_logging
from questlog.config.settings import get_settings
from questlog.courses.router import router as courses_router
from questlog.database.engine import engine
from questlog.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    StoreUnavailableError,
    ValidationError as DomainValidationError,
)
from questlog.middleware.error_handlers import (
    ErrorCategory,
    ErrorCode,
    format_error_response,
    handle_conflict_errors,
    handle_database_errors,
    handle_http_exceptions,
    handle_not_found_errors,
    handle_store_unavailable,
    handle_validation_errors,
    log_error_context,
)
from questlog.middleware.security import SimpleSecurityMiddleware, limiter
from questlog.progress.router import router as progress_router


setup_logging()
logger = logging.getLogger(__name__)


def _register_routers(app: FastAPI) -> None:
    """Register all application routers."""
    app.include_router(auth_router)
    app.include_router(progress_router)
    app.include_router(courses_router)
    app.include_router(achievements_router)


async def _startup_validation() -> None:
    """Refuse to start with an insecure auth configuration."""
    settings = get_settings()
    if settings.ENVIRONMENT != "production":
        return

    if settings.AUTH_PROVIDER == "none":
        msg = "AUTH_PROVIDER='none' is not allowed in production"
        raise RuntimeError(msg)
    if settings.AUTH_SECRET_KEY.get_secret_value() == "change-me-in-production":
        msg = "AUTH_SECRET_KEY must be set in production"
        raise RuntimeError(msg)
    if settings.DEV_AUTH_ENABLED:
        logger.warning("DEV_AUTH_ENABLED is set in production; the dev sign-in route stays disabled")


async def _startup_database() -> None:
    """Initialize database with retry logic."""
    max_retries = 5
    retry_delay = 1  # seconds

    for attempt in range(max_retries):
        try:
            from questlog.database.init import init_database

            await init_database(engine)
            logger.info("Database initialization completed successfully")

            break

        except OperationalError:
            if attempt == max_retries - 1:
                logger.exception("Startup failed after %d attempts", max_retries)
                raise

            logger.warning(
                "Database connection attempt %d failed, retrying in %ds...",
                attempt + 1,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay *= 2  # Exponential backoff

        except Exception:
            logger.exception("Startup failed with unexpected error")
            raise


async def _shutdown_cleanup() -> None:
    """Clean up resources on shutdown."""
    logger.info("Starting graceful shutdown...")

    try:
        await engine.dispose()
        logger.info("Database engine disposed successfully")
    except Exception as e:
        logger.warning("Error disposing database engine: %s", e)

    logger.info("Shutdown complete")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    await _startup_validation()
    await _startup_database()

    yield

    await _shutdown_cleanup()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    try:
        settings = get_settings()
    except Exception:
        logger.exception("Failed to load settings")
        raise

    app = FastAPI(
        title="Questlog API",
        description="Course tracking with experience, levels and achievements",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan if settings.ENVIRONMENT != "test" else None,
    )

    # Note: When allow_credentials=True, allow_origins cannot be ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Holds OAuth state and nonce between the redirect and the callback
    app.add_middleware(
        SessionMiddleware,
        secret_key=get_session_signing_key(),
        https_only=settings.ENVIRONMENT == "production",
    )

    app.add_middleware(SimpleSecurityMiddleware)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(ResourceNotFoundError, handle_not_found_errors)
    app.add_exception_handler(DomainValidationError, handle_validation_errors)
    app.add_exception_handler(RequestValidationError, handle_validation_errors)
    app.add_exception_handler(ConflictError, handle_conflict_errors)
    app.add_exception_handler(StoreUnavailableError, handle_store_unavailable)

    # Database errors that escaped the services
    app.add_exception_handler(IntegrityError, handle_database_errors)
    app.add_exception_handler(OperationalError, handle_database_errors)
    app.add_exception_handler(DatabaseError, handle_database_errors)

    # Auth failures and other HTTP errors
    app.add_exception_handler(StarletteHTTPException, handle_http_exceptions)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        from uuid import uuid4

        error_id = uuid4()
        log_error_context(request, exc, error_id)

        # Return generic error response without exposing internal details
        return format_error_response(
            category=ErrorCategory.INTERNAL,
            code=ErrorCode.INTERNAL,
            detail="An unexpected error occurred",
            status_code=500,
            metadata={"error_id": str(error_id)},
            suggestions=["Please try again later", "If the problem persists, contact support with the error ID"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Check application health status."""
        return {"status": "healthy"}

    _register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from questlog.config import env

    host = env("API_HOST", "127.0.0.1")
    port = int(env("API_PORT", "8080"))

    uvicorn.run(app, host=host, port=port)
