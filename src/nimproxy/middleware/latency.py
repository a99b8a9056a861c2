from __future__ import annotations

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("nimproxy.metrics")


class LatencyMiddleware(BaseHTTPMiddleware):
    """Adds X-Nimproxy-* headers with request latency and the resolved backend model.

    For streaming responses the latency covers time to first byte only.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.monotonic()

        response = await call_next(request)

        elapsed_ms = (time.monotonic() - start) * 1000
        response.headers["X-Nimproxy-Latency-Ms"] = f"{elapsed_ms:.1f}"

        upstream_model = getattr(request.state, "upstream_model", None)
        if upstream_model:
            response.headers["X-Nimproxy-Upstream-Model"] = upstream_model
            logger.debug(
                "%s %s -> %s in %.1fms",
                request.method,
                request.url.path,
                upstream_model,
                elapsed_ms,
            )

        return response
