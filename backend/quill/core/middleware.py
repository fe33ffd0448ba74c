"""
Middleware Configuration

CORS, request ID tracking and request logging for the FastAPI application.
"""

import re
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from quill.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Accept a caller-supplied request ID only if it is short and printable
INBOUND_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")

# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = {"/api/health"}


def resolve_request_id(request: Request) -> str:
    """Reuse a well-formed X-Request-ID from the proxy, else mint a UUID."""
    inbound = request.headers.get(REQUEST_ID_HEADER, "")
    if INBOUND_REQUEST_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


async def request_id_middleware(request: Request, call_next: Callable) -> Response:
    """
    Attach a request ID to the request, its log lines and its response.

    Available as request.state.request_id (error bodies), as
    extra[request_id] in loguru records, and as the X-Request-ID header.
    """
    req_id = resolve_request_id(request)
    request.state.request_id = req_id

    with logger.contextualize(request_id=req_id):
        response = await call_next(request)

    response.headers[REQUEST_ID_HEADER] = req_id
    return response


async def access_log_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and duration for each request."""
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000

    level = "DEBUG" if request.url.path in QUIET_PATHS else "INFO"
    client = request.client.host if request.client else "-"
    logger.log(
        level,
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration_ms:.1f}ms, client={client})",
    )
    return response


def setup_middleware(app: FastAPI) -> None:
    """
    Configure all middleware for the FastAPI application.

    Middleware registered later wraps earlier ones, so the request ID
    middleware (registered last) runs outermost and the access log line
    carries its request_id.

    Args:
        app: FastAPI application instance
    """
    # Credentials are required for the session cookie to cross origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.middleware("http")(access_log_middleware)
    app.middleware("http")(request_id_middleware)
