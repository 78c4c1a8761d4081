from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("orderflow.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log for the policy, reference and routing endpoints.

    The caller's x-request-id is reused when present so a routed batch can be
    traced back to the upstream extraction job; it is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        status = "NA"

        try:
            response = await call_next(request)
            status = response.status_code
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.info(
                "request_id=%s method=%s path=%s status=%s duration_ms=%.2f",
                request_id,
                request.method,
                request.url.path,
                status,
                duration_ms,
            )

        response.headers["x-request-id"] = request_id
        return response
