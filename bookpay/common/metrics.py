"""Prometheus metric definitions for the booking API."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
orders_created_total = Counter(
    "orders_created_total",
    "Gateway order creation attempts by outcome",
    ["service", "outcome"],
)
gateway_latency_seconds = Histogram(
    "gateway_latency_seconds",
    "Payment gateway call latency seconds",
    ["service"],
)
payment_verifications_total = Counter(
    "payment_verifications_total",
    "Payment signature verifications by outcome",
    ["service", "outcome"],
)
bookings_saved_total = Counter(
    "bookings_saved_total",
    "Booking insert attempts by outcome",
    ["service", "outcome"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
