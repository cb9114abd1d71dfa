"""
Prometheus metrics middleware for HTTP request tracking.

This middleware integrates with the prometheus_metrics module to
track HTTP request metrics including duration, status codes, and
in-progress requests.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

METRICS_PATH = "/metrics"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and collect metrics.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        # Skip metrics collection for the metrics endpoint itself
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        method = request.method
        # In-progress gauge uses the raw path; the route template is only known afterwards
        raw_path = request.url.path

        prometheus_metrics.track_http_request_start(method, raw_path)
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            # Route template keeps ULIDs out of the label set
            route = request.scope.get("route")
            endpoint = getattr(route, "path", None) or "unmatched"
            prometheus_metrics.record_http_request(
                method=method, endpoint=endpoint, duration=duration, status_code=response.status_code
            )

            return response

        finally:
            prometheus_metrics.track_http_request_end(method, raw_path)
