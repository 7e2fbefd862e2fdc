"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import record_request
from api.logging import request_logging_middleware
from api.models import ErrorCodes, ErrorResponse
from api.routes import (
    auth_router,
    calendar_router,
    extract_router,
    gmail_router,
    health_router,
)
from core.config import (
    API_DEBUG,
    API_VERSION,
    CORS_ORIGINS,
    DB_PATH,
    LOG_FORMAT,
    LOG_LEVEL,
    RETRY_AFTER_SECONDS,
)
from core.database import ensure_database
from core.errors import AppError
from core.log_context import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    if app.state.setup_logging:
        configure_logging(LOG_LEVEL, LOG_FORMAT)
    ensure_database(Path(app.state.db_path))
    logger.info("Database ready", extra={"db_path": str(app.state.db_path)})
    yield


async def app_error_handler(request: Request, exc: AppError):
    """Map application errors to their status and standard error body."""
    record_request(request, error_code=exc.code, error_message=exc.message)
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        extra={"error_code": exc.code, "status": exc.status_code, "error": exc.message},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=exc.message,
            code=exc.code,
            details=exc.details,
        ).model_dump(),
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    record_request(
        request, error_code=ErrorCodes.VALIDATION_ERROR, error_message="Invalid request body"
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            message="Invalid request",
            code=ErrorCodes.VALIDATION_ERROR,
            details=details,
        ).model_dump(),
    )


# Global exception handler for unexpected errors
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.exception("Unhandled error")
    record_request(
        request, error_code=ErrorCodes.INTERNAL_ERROR, error_message=type(exc).__name__
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            message="Internal server error",
            code=ErrorCodes.INTERNAL_ERROR,
            details=[],
        ).model_dump(),
    )


def create_app(db_path: Path | str = DB_PATH, setup_logging: bool = True) -> FastAPI:
    """Build the API application backed by the SQLite database at ``db_path``."""
    app = FastAPI(
        title="Calendar Proxy API",
        description="Google sign-in, calendar and Gmail proxy with event extraction",
        version=API_VERSION,
        debug=API_DEBUG,
        lifespan=lifespan,
    )
    app.state.db_path = db_path
    app.state.setup_logging = setup_logging

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(calendar_router)
    app.include_router(gmail_router)
    app.include_router(extract_router)
    return app


app = create_app()


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
        log_config=None,
    )
