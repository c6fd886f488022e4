"""
Request Timing Middleware

Logs requests slower than SLOW_REQUEST_THRESHOLD and, once
setup_query_logging() has been called, slow SQL statements.
"""
import time
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD = 0.5  # seconds


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Times each request and reports the slow ones."""

    def __init__(self, app, threshold: float = 1.0):
        super().__init__(app)
        self.threshold = threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        total_time = time.perf_counter() - start_time

        if total_time > self.threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {total_time:.3f}s",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration": round(total_time, 3),
                },
            )

        response.headers["X-Total-Time"] = f"{total_time:.3f}"
        return response


def setup_query_logging(engine: Engine, threshold: float = SLOW_QUERY_THRESHOLD) -> None:
    """Attach listeners that log statements slower than ``threshold`` seconds."""

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total = time.perf_counter() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(
                f"Slow query ({total:.3f}s): {statement[:200]}{'...' if len(statement) > 200 else ''}"
            )
