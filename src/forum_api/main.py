"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from forum_api import __version__, models  # noqa: F401 - models registers every table
from forum_api.api import api_router
from forum_api.config import get_settings
from forum_api.database import Base, engine
from forum_api.schemas.envelope import ErrorDetail, ErrorEnvelope
from forum_api.services.base import ServiceError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - runs on startup and shutdown."""
    # Startup
    logger.info("Starting %s v%s", settings.app_name, __version__)
    logger.info("Debug mode: %s", settings.debug)
    logger.info("Database: %s", engine.url.get_backend_name())  # Hide credentials

    # Validate and log warnings
    warnings = settings.validate_runtime_config()
    if warnings:
        logger.warning("Configuration warnings:")
        for warning in warnings:
            logger.warning("  - %s", warning)
    else:
        logger.info("Configuration validation passed - no warnings")

    if settings.create_tables_on_startup:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
)


def error_response(status_code: int, error: ErrorDetail) -> JSONResponse:
    """Build the failure envelope. A missing field name is left out."""
    envelope = ErrorEnvelope(message=error.message, error=error)
    return JSONResponse(status_code=status_code, content=envelope.model_dump(exclude_none=True))


@app.exception_handler(ServiceError)
async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Handle validation, authorization, not-found and store errors globally."""
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return error_response(exc.status_code, ErrorDetail(**exc.to_error()))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first malformed request field, like the validation stage does."""
    errors = exc.errors()
    if not errors:
        return error_response(400, ErrorDetail(message="Invalid request"))

    first = errors[0]
    fields = [
        part
        for part in first.get("loc", ())
        if isinstance(part, str) and part not in ("body", "query", "path")
    ]
    name = fields[-1] if fields else None
    return error_response(400, ErrorDetail(name=name, message=first.get("msg", "Invalid value")))


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors globally without exposing driver messages."""
    logger.exception("Database error", exc_info=exc)
    return error_response(500, ErrorDetail(message="Database error"))


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Answer any other failure with the failure envelope. Details are only logged."""
    logger.exception("Unhandled error", exc_info=exc)
    return error_response(500, ErrorDetail(message="Internal server error"))


# Include API router
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the API is running."""
    return {"status": "healthy", "version": __version__}
