"""Spans and log context recorded around the booking flow's external calls."""

import logging
from decimal import Decimal

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from bookpay.common.errors import PersistenceError
from bookpay.common.logging import ContextFilter, bind_payment_context
from bookpay.services.booking_api.schemas import BookingCreateRequest, PaymentVerifyRequest
from conftest import checkout_signature


@pytest.fixture
def spans(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr("bookpay.common.tracing.tracer", provider.get_tracer("test"))
    return exporter


def _by_name(exporter):
    return {span.name: span for span in exporter.get_finished_spans()}


def test_order_call_is_traced(flow, spans):
    flow.create_order(Decimal("500"))
    span = _by_name(spans)["razorpay.order.create"]
    assert span.attributes["booking.amount_minor"] == 50000
    assert span.attributes["booking.order_id"] == "order_1"
    assert span.attributes["booking.receipt"] == "receipt_1760000000123"


def test_insert_span_carries_payment_ids(flow, spans, booking_payload):
    claim = PaymentVerifyRequest(
        razorpay_order_id="order_1",
        razorpay_payment_id="pay_1",
        razorpay_signature=checkout_signature("order_1", "pay_1"),
    )
    token = flow.verify_payment(claim)
    booking_payload.update(paymentId="pay_1", verificationToken=token)
    flow.save_booking(BookingCreateRequest.model_validate(booking_payload))

    recorded = _by_name(spans)
    assert recorded["razorpay.verify_payment_signature"].attributes["booking.signature_verified"] is True
    insert = recorded["bookings.insert"]
    assert insert.attributes["booking.order_id"] == "order_1"
    assert insert.attributes["booking.payment_id"] == "pay_1"
    assert insert.attributes["booking.table"] == "bookings"


def test_failed_insert_marks_span_errored(flow, store, spans, booking_payload):
    store.error = "could not connect to server"
    flow.require_verification_token = False
    booking_payload["paymentId"] = "pay_1"
    with pytest.raises(PersistenceError):
        flow.save_booking(BookingCreateRequest.model_validate(booking_payload))
    insert = _by_name(spans)["bookings.insert"]
    assert insert.status.status_code == StatusCode.ERROR
    assert insert.status.description == "StoreError"
    assert "booking.order_id" not in insert.attributes


def test_log_records_carry_bound_payment():
    bind_payment_context("order_7", "pay_7")
    record = logging.LogRecord("bookpay", logging.INFO, __file__, 1, "saved", None, None)
    assert ContextFilter().filter(record) is True
    assert (record.order_id, record.payment_id) == ("order_7", "pay_7")
    assert record.otel_trace_id == ""
