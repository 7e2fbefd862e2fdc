"""SQLite request logging for API."""

import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Request

from core.log_context import log_context

logger = logging.getLogger(__name__)


@dataclass
class RequestLog:
    """Captured request/response data for logging."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    user_id: str | None = None
    operation: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    item_count: int | None = None


def log_request(log: RequestLog, db_path: Path | str) -> None:
    """Write request log to SQLite database."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip,
                user_id, operation, status_code, error_code, error_message,
                processing_time_ms, item_count
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.user_id,
                log.operation,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
                log.item_count,
            ),
        )
        conn.commit()
    finally:
        conn.close()


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def request_logging_middleware(request: Request, call_next):
    """
    Record every request in ``api_requests`` and scope log context to it.

    Routes and exception handlers fill ``request.state.request_log``
    with the user, operation and error details they know about.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
    )
    request.state.request_log = request_log

    with log_context(request_id=request_log.request_id, endpoint=request_log.endpoint):
        logger.info("Request received", extra={"method": request_log.method})
        try:
            response = await call_next(request)
            request_log.status_code = response.status_code
        except Exception as e:
            request_log.status_code = 500
            request_log.error_message = request_log.error_message or type(e).__name__
            raise
        finally:
            request_log.processing_time_ms = int((time.time() - start_time) * 1000)
            logger.info(
                "Request completed",
                extra={
                    "status": request_log.status_code,
                    "user_id": request_log.user_id,
                    "duration_ms": request_log.processing_time_ms,
                },
            )
            try:
                log_request(request_log, request.app.state.db_path)
            except sqlite3.Error:
                # Don't fail the request if logging fails
                logger.exception("Failed to write request log")

    response.headers["X-Request-ID"] = request_log.request_id
    return response
