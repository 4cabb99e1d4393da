"""HTTP request metrics.

Series are labelled by the matched route template, so
/v1/enrollments/abc and /v1/enrollments/def both land on
"/v1/enrollments/{enrollment_id}".  Paths no route matched (404s) keep
their raw path.  Scrapes of /metrics are not counted.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from enrollview.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

_UNINSTRUMENTED = frozenset({"/metrics"})


def endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _record(request: Request, status_code: int, elapsed: float) -> None:
    endpoint = endpoint_label(request)
    REQUEST_COUNT.labels(
        method=request.method, endpoint=endpoint, status_code=str(status_code)
    ).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(elapsed)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _UNINSTRUMENTED:
            return await call_next(request)

        started = time.perf_counter()
        with ACTIVE_REQUESTS.track_inprogress():
            try:
                response = await call_next(request)
            except Exception:
                # Unhandled errors reach the client as a 500.
                _record(request, 500, time.perf_counter() - started)
                raise
        _record(request, response.status_code, time.perf_counter() - started)
        return response
