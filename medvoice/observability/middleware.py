# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Observability - Request Middleware

FastAPI middleware for request correlation, logging and metrics.
"""

import logging
import re
import time
from collections.abc import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import clear_request_context, log_request_end, set_request_context
from .metrics import get_metrics

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    flags=re.IGNORECASE,
)
_NUMERIC_ID_RE = re.compile(r"/\d+(?=/|$)")


def normalize_path(path: str) -> str:
    """
    Normalize path for metrics aggregation.

    Replaces UUIDs and numeric IDs with placeholders.
    """
    path = _UUID_RE.sub("{uuid}", path)
    return _NUMERIC_ID_RE.sub("/{id}", path)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request ID, records request metrics and logs completion.

    Usage:
        app.add_middleware(RequestContextMiddleware)
    """

    def __init__(
        self,
        app,
        excluded_paths: list | None = None,
    ):
        super().__init__(app)
        self.excluded_paths = excluded_paths or [
            "/health",
            "/metrics",
        ]

    def _should_track(self, path: str) -> bool:
        return all(not path.startswith(excluded) for excluded in self.excluded_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        method = request.method

        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        if not self._should_track(path):
            try:
                response = await call_next(request)
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                clear_request_context()

        start_time = time.time()
        status_code = 500  # Default for exceptions

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception:
            logger.exception(f"Request failed: {method} {path}")
            raise

        finally:
            duration = time.time() - start_time
            get_metrics().record_http_request(
                method=method,
                endpoint=normalize_path(path),
                status_code=status_code,
                duration_seconds=duration,
            )
            log_request_end(method, path, request_id, status_code, duration * 1000)
            clear_request_context()


__all__ = [
    "RequestContextMiddleware",
    "REQUEST_ID_HEADER",
    "normalize_path",
]
