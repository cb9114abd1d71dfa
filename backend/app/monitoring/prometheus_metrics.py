"""
Prometheus metrics module for Jawla.

This module provides Prometheus-compatible metrics on top of the
@measure_operation performance data, plus a few domain counters for the
booking engine (slot locks, lifecycle transitions, rejected bookings).
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Custom registry so repeated app construction in tests doesn't collide with defaults
REGISTRY = CollectorRegistry()

http_request_duration_seconds = Histogram(
    "jawla_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "jawla_http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

http_requests_in_progress = Gauge(
    "jawla_http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
    registry=REGISTRY,
)

service_operation_duration_seconds = Histogram(
    "jawla_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "jawla_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "jawla_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Booking engine counters
slot_lock_events_total = Counter(
    "jawla_slot_lock_events_total",
    "Slot lock acquire/release outcomes",
    ["action", "outcome", "backend"],  # acquire|release, success|blocked|error|...
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "jawla_booking_transitions_total",
    "Accepted booking lifecycle transitions",
    ["from_status", "to_status"],
    registry=REGISTRY,
)

booking_rejections_total = Counter(
    "jawla_booking_rejections_total",
    "Booking attempts and transitions refused by the engine",
    ["reason"],  # slot_taken | slot_not_found | illegal_transition | not_authorized
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_http_request(method: str, endpoint: str, duration: float, status_code: int) -> None:
        """Record HTTP request metrics."""
        labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

        http_request_duration_seconds.labels(**labels).observe(duration)
        http_requests_total.labels(**labels).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def track_http_request_start(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

    @staticmethod
    def track_http_request_end(method: str, endpoint: str) -> None:
        http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_slot_lock(action: str, outcome: str, backend: str) -> None:
        """Count a slot lock acquire/release outcome."""
        slot_lock_events_total.labels(action=action, outcome=outcome, backend=backend).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_transition(from_status: Optional[str], to_status: str) -> None:
        booking_transitions_total.labels(
            from_status=from_status or "none", to_status=to_status
        ).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_rejection(reason: str) -> None:
        booking_rejections_total.labels(reason=reason).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts
        ttl = PrometheusMetrics._cache_ttl_seconds

        if payload is not None and ts is not None and (now - ts) <= ttl:
            return payload

        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            if payload is None or ts is None or (now - ts) > ttl:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
                PrometheusMetrics._cache_ts = monotonic()
                payload = PrometheusMetrics._cache_payload

        return cast(bytes, payload)

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
