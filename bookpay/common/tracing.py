"""OpenTelemetry setup and span helpers for the booking API.

With tracing disabled no provider is registered, so `booking_span` yields
the API's no-op spans and callers never need to branch.
"""

from contextlib import contextmanager

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.trace import Status, StatusCode

from bookpay.common.config import settings

tracer = trace.get_tracer("bookpay.booking_api")


def setup_tracing(service_name: str) -> None:
    """Register a tracer provider exporting to the OTLP HTTP collector."""

    if not settings.tracing_enabled:
        return
    resource = Resource.create(
        {
            "service.name": service_name,
            "payment.gateway": settings.gateway_name,
            "payment.currency": settings.currency,
        }
    )
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(endpoint=settings.otel_exporter_otlp_endpoint)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)


def instrument_app(app: FastAPI) -> None:
    """Attach FastAPI auto-instrumentation; `/metrics` and `/health` are excluded."""

    if not settings.tracing_enabled:
        return
    FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics,health")


@contextmanager
def booking_span(name: str, order_id: str | None = None, payment_id: str | None = None, **attributes):
    """Span around one external call of the booking flow.

    Order/payment ids are recorded as `booking.order_id` / `booking.payment_id`;
    None-valued attributes are dropped. Exceptions mark the span as errored
    and propagate.
    """

    attrs = {"booking.order_id": order_id, "booking.payment_id": payment_id}
    attrs.update({f"booking.{key}": value for key, value in attributes.items()})
    with tracer.start_as_current_span(
        name,
        attributes={key: value for key, value in attrs.items() if value is not None},
        record_exception=True,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise
