"""
HTTP middleware: CORS and request logging.

Responsibilities:
- Open CORS for the browser front end (origins from CORS_ORIGINS).
- Request/response logging with method, path, status and timing.
"""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from backend_bags.bags_logging import get_logger

logger = get_logger(__name__)


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    t0 = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "api_request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    return response


def install_middleware(app: FastAPI, cors_origins: tuple[str, ...] = ("*",)) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
