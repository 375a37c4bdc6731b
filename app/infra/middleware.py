"""Request middleware: request ids, access logging and CORS for the chat client."""

import uuid
import time
import logging
from typing import Callable, List
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.infra.config import config

logger = logging.getLogger("app.request")

# Probes and scrapes are logged at DEBUG only
QUIET_PATHS = {"/health", "/health/live", "/health/ready", "/metrics"}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate the caller's X-Request-ID or assign a new one."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log for every request.

    For streamed chat replies the duration covers tool assembly up to the
    first byte; the stream itself is logged by the chat engine.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO
        context = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": path,
        }

        started = time.perf_counter()
        logger.log(level, "Request started", extra={
            **context,
            "client": request.client.host if request.client else None,
        })

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={**context, "error": str(e), "duration_ms": _elapsed_ms(started)},
                exc_info=True,
            )
            raise

        duration_ms = _elapsed_ms(started)
        logger.log(level, "Request completed", extra={
            **context,
            "status_code": response.status_code,
            "streamed": "x-vercel-ai-data-stream" in response.headers,
            "duration_ms": duration_ms,
        })
        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        return response


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def allowed_origins() -> List[str]:
    """CORS origins from CORS_ORIGINS; the wildcard is only honoured in development."""
    configured = [origin.strip() for origin in config.CORS_ORIGINS.split(",") if origin.strip()]
    if not configured:
        return ["*"] if config.APP_ENV == "development" else []
    if config.APP_ENV != "development":
        configured = [origin for origin in configured if origin != "*"]
    return configured


def setup_cors(app: FastAPI) -> None:
    """Let the browser chat client read the stream and its headers."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Response-Time-Ms", "x-vercel-ai-data-stream"],
    )
