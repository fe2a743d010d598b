"""Tests for the Razorpay adapter: order call shape, error wrapping, signature checks."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
import razorpay

from bookpay.common.errors import GatewayCallError, GatewayError
from bookpay.services.booking_api.gateway import RazorpayGateway
from bookpay.services.booking_api.service import BookingFlowService

ORDER_ID = "order_9A33XWu170gUtm"
PAYMENT_ID = "pay_29QQoUBi66xm2f"
# HMAC-SHA256("test_secret", "order_9A33XWu170gUtm|pay_29QQoUBi66xm2f")
KNOWN_SIGNATURE = "a982c20f48234e966ccc8d903bff75730b34341007236ad8c8a9d7c0ae5848c5"


class RecordingOrders:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[dict] = []
        self.error = error

    def create(self, data=None, **kwargs):
        self.calls.append(data)
        if self.error:
            raise self.error
        return {"id": "order_stub", "status": "created", **data}


def _gateway(orders: RecordingOrders) -> RazorpayGateway:
    return RazorpayGateway("rzp_test_key", "test_secret", client=SimpleNamespace(order=orders))


def test_create_order_call_shape():
    orders = RecordingOrders()
    order = _gateway(orders).create_order(50000, "INR", "receipt_1")
    assert orders.calls == [{"amount": 50000, "currency": "INR", "receipt": "receipt_1"}]
    assert order["id"] == "order_stub"


def test_sdk_error_becomes_gateway_call_error():
    orders = RecordingOrders(error=razorpay.errors.BadRequestError("Authentication failed"))
    with pytest.raises(GatewayCallError) as excinfo:
        _gateway(orders).create_order(100, "INR", "receipt_1")
    assert "Authentication failed" in str(excinfo.value)


def test_sdk_error_surfaces_as_generic_gateway_error(store, tokens):
    gateway = _gateway(RecordingOrders(error=razorpay.errors.ServerError("upstream 502")))
    flow = BookingFlowService(gateway=gateway, store=store, tokens=tokens, signing_secret="test_secret")
    with pytest.raises(GatewayError) as excinfo:
        flow.create_order(Decimal("100"))
    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "Failed to create order"


def test_verify_signature_known_vector():
    gateway = RazorpayGateway("rzp_test_key", "test_secret")
    assert gateway.verify_signature(ORDER_ID, PAYMENT_ID, KNOWN_SIGNATURE) is True


def test_verify_signature_rejects_flipped_character():
    gateway = RazorpayGateway("rzp_test_key", "test_secret")
    flipped = KNOWN_SIGNATURE[:-1] + "6"
    assert gateway.verify_signature(ORDER_ID, PAYMENT_ID, flipped) is False
    assert gateway.verify_signature(ORDER_ID, PAYMENT_ID, KNOWN_SIGNATURE.upper()) is False


def test_verify_signature_depends_on_every_input():
    gateway = RazorpayGateway("rzp_test_key", "test_secret")
    assert gateway.verify_signature(ORDER_ID + "x", PAYMENT_ID, KNOWN_SIGNATURE) is False
    assert gateway.verify_signature(ORDER_ID, PAYMENT_ID + "x", KNOWN_SIGNATURE) is False
    other = RazorpayGateway("rzp_test_key", "other_secret")
    assert other.verify_signature(ORDER_ID, PAYMENT_ID, KNOWN_SIGNATURE) is False


def test_verify_signature_non_ascii_input_is_a_mismatch():
    gateway = RazorpayGateway("rzp_test_key", "test_secret")
    assert gateway.verify_signature(ORDER_ID, PAYMENT_ID, "signaturé") is False
