"""Booking flow logic.

Three independent phases driven by the client: create a gateway order, verify
the checkout signature, record the paid booking. Each phase makes at most one
call to one external dependency and is all-or-nothing.
"""

import time
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Any

from bookpay.common.errors import (
    ConfigError,
    GatewayCallError,
    GatewayError,
    InvalidInput,
    PersistenceError,
    SignatureMismatch,
    StoreError,
)
from bookpay.common.logging import bind_payment_context, logger
from bookpay.common.metrics import (
    bookings_saved_total,
    gateway_latency_seconds,
    orders_created_total,
    payment_verifications_total,
)
from bookpay.common.tracing import booking_span
from bookpay.services.booking_api.gateway import PaymentGateway
from bookpay.services.booking_api.schemas import BookingCreateRequest, PaymentVerifyRequest
from bookpay.services.booking_api.store import BookingStore
from bookpay.services.booking_api.tokens import VerificationGrant, VerificationTokenStore


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise, truncating anything below one paisa."""

    return int((amount * 100).to_integral_value(rounding=ROUND_DOWN))


def compose_booking_date(year: int, month_index: int, day: int) -> date:
    """Build a calendar date from a 0-indexed month; reject impossible dates."""

    try:
        return date(year, month_index + 1, day)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidInput(
            f"invalid booking date: year={year} month={month_index} day={day}"
        ) from exc


class BookingFlowService:
    """Owns the create-order / verify-payment / save-booking contracts."""

    def __init__(
        self,
        gateway: PaymentGateway,
        store: BookingStore,
        tokens: VerificationTokenStore | None,
        signing_secret: str,
        currency: str = "INR",
        gateway_name: str = "razorpay",
        bookings_table: str = "bookings",
        require_verification_token: bool = True,
        service_name: str = "booking-api",
        clock=time.time,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.tokens = tokens
        self.signing_secret = signing_secret
        self.currency = currency
        self.gateway_name = gateway_name
        self.bookings_table = bookings_table
        self.require_verification_token = require_verification_token
        self.service_name = service_name
        self.clock = clock

    def public_key(self) -> str:
        return self.gateway.public_key

    def _receipt(self) -> str:
        return f"receipt_{int(self.clock() * 1000)}"

    def create_order(self, amount: Decimal | None) -> dict:
        """Create a pending gateway order for `amount` major units."""

        if amount is None or not amount.is_finite() or amount <= 0:
            orders_created_total.labels(service=self.service_name, outcome="invalid").inc()
            raise InvalidInput("Amount is required")
        amount_minor = to_minor_units(amount)
        if amount_minor <= 0:
            orders_created_total.labels(service=self.service_name, outcome="invalid").inc()
            raise InvalidInput("Amount is required")

        receipt = self._receipt()
        try:
            with booking_span("razorpay.order.create", receipt=receipt, amount_minor=amount_minor) as span:
                with gateway_latency_seconds.labels(service=self.service_name).time():
                    order = self.gateway.create_order(amount_minor, self.currency, receipt)
                span.set_attribute("booking.order_id", str(order.get("id", "")))
        except GatewayCallError as exc:
            orders_created_total.labels(service=self.service_name, outcome="failed").inc()
            logger.error("create order failed receipt=%s error=%s", receipt, exc)
            raise GatewayError("Failed to create order") from exc

        bind_payment_context(order_id=str(order.get("id", "")))
        orders_created_total.labels(service=self.service_name, outcome="created").inc()
        logger.info("order created receipt=%s amount_minor=%s", receipt, amount_minor)
        return order

    def verify_payment(self, claim: PaymentVerifyRequest) -> str | None:
        """Check the claim's signature; return a verification token when it holds.

        The token is None only when no token store is configured.
        """

        bind_payment_context(claim.razorpay_order_id, claim.razorpay_payment_id)
        if not self.signing_secret:
            payment_verifications_total.labels(service=self.service_name, outcome="misconfigured").inc()
            logger.critical("RAZORPAY_KEY_SECRET is not configured; refusing to verify payments")
            raise ConfigError("Server configuration error")

        with booking_span(
            "razorpay.verify_payment_signature",
            order_id=claim.razorpay_order_id,
            payment_id=claim.razorpay_payment_id,
        ) as span:
            verified = self.gateway.verify_signature(
                claim.razorpay_order_id, claim.razorpay_payment_id, claim.razorpay_signature
            )
            span.set_attribute("booking.signature_verified", verified)
        if not verified:
            payment_verifications_total.labels(service=self.service_name, outcome="mismatch").inc()
            logger.warning("payment signature mismatch")
            raise SignatureMismatch("Invalid signature")

        payment_verifications_total.labels(service=self.service_name, outcome="verified").inc()
        logger.info("payment signature verified")
        if self.tokens is None:
            return None
        return self.tokens.issue(claim.razorpay_order_id, claim.razorpay_payment_id)

    def _take_grant(
        self, req: BookingCreateRequest, order_id: str | None, payment_id: str
    ) -> VerificationGrant | None:
        """Consume the request's grant; None when grants are not required."""

        if not self.require_verification_token:
            return None
        if self.tokens is None:
            raise ConfigError("Server configuration error")
        if not req.verification_token:
            raise InvalidInput("verificationToken is required")
        grant = self.tokens.consume(req.verification_token)
        if grant is None:
            raise InvalidInput("verification token is invalid or expired")
        if grant.payment_id != payment_id or (order_id and grant.order_id != order_id):
            # The grant still belongs to its own payment.
            self.tokens.restore(req.verification_token, grant)
            raise InvalidInput("verification token does not match this payment")
        return grant

    def _give_back_grant(self, req: BookingCreateRequest, grant: VerificationGrant | None) -> None:
        if grant is not None:
            self.tokens.restore(req.verification_token, grant)
            logger.info("verification grant restored after failed booking write")

    def build_record(self, req: BookingCreateRequest) -> dict[str, Any]:
        """Map the frontend payload onto one `bookings` row."""

        ref = req.payment_reference(self.gateway_name)
        customer = req.customer
        return {
            "user_id": req.user_id,
            "customer_name": f"{customer.first_name} {customer.last_name}".strip(),
            "customer_email": customer.email,
            "customer_phone": customer.phone,
            "customer_address": customer.address,
            "customer_city": customer.city,
            "customer_zip": customer.zip,
            "customer_message": customer.message,
            "services": req.services,
            "booking_date": compose_booking_date(req.booking.year, req.booking.month, req.booking.day),
            "booking_time": req.booking.time,
            "total_amount": req.total_amount,
            "order_id": ref.order_id,
            "payment_id": ref.payment_id,
            "payment_method": ref.method,
            "payment_status": "paid",
            "payment_verified": True,
        }

    def save_booking(self, req: BookingCreateRequest) -> dict[str, Any]:
        """Insert one paid booking row and return what the store echoed back.

        A grant consumed for this request is put back if the insert fails, so
        the client can retry with the same token.
        """

        record = self.build_record(req)
        bind_payment_context(record["order_id"] or "", record["payment_id"])
        try:
            grant = self._take_grant(req, record["order_id"], record["payment_id"])
        except InvalidInput:
            bookings_saved_total.labels(service=self.service_name, outcome="unverified").inc()
            logger.warning("booking rejected without a valid verification grant")
            raise
        if grant is not None and not record["order_id"]:
            record["order_id"] = grant.order_id
            bind_payment_context(order_id=grant.order_id)

        logger.info("saving booking for customer_email=%s", record["customer_email"])
        try:
            with booking_span(
                "bookings.insert",
                order_id=record["order_id"],
                payment_id=record["payment_id"],
                table=self.bookings_table,
            ):
                row = self.store.insert(self.bookings_table, record)
        except StoreError as exc:
            self._give_back_grant(req, grant)
            bookings_saved_total.labels(service=self.service_name, outcome="failed").inc()
            logger.error("booking insert failed: %s", exc)
            raise PersistenceError(str(exc)) from exc
        except Exception:
            self._give_back_grant(req, grant)
            raise

        bookings_saved_total.labels(service=self.service_name, outcome="saved").inc()
        logger.info("booking saved booking_id=%s", row.get("id"))
        return row
