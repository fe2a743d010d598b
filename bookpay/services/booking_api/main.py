"""HTTP surface for the booking frontend.

Exposes the three client-driven phases (create order, verify payment, save
booking) plus the public gateway key. All errors leave as JSON.
"""

from time import perf_counter
from uuid import uuid4

import redis
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from bookpay.common.config import settings
from bookpay.common.db import Base, SessionLocal, create_schema, engine
from bookpay.common.errors import BookingFlowError, InvalidInput, UnhandledCrash
from bookpay.common.logging import configure_logging, logger, trace_id_ctx
from bookpay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from bookpay.common.startup import log_registered_routes, log_required_secrets, log_startup_config
from bookpay.common.tracing import instrument_app, setup_tracing
from bookpay.services.booking_api import models  # noqa: F401  registers the bookings table
from bookpay.services.booking_api.gateway import RazorpayGateway
from bookpay.services.booking_api.schemas import (
    BookingCreateRequest,
    BookingCreateResponse,
    OrderCreateRequest,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from bookpay.services.booking_api.service import BookingFlowService
from bookpay.services.booking_api.store import SqlBookingStore
from bookpay.services.booking_api.tokens import VerificationTokenStore

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "PORT",
        "RAZORPAY_KEY_ID",
        "RAZORPAY_KEY_SECRET",
        "POSTGRES_DSN",
        "REDIS_URL",
        "REQUIRE_VERIFICATION_TOKEN",
    ],
)
log_required_secrets(
    {
        "RAZORPAY_KEY_ID": settings.razorpay_key_id,
        "RAZORPAY_KEY_SECRET": settings.razorpay_key_secret,
    }
)

if settings.postgres_dsn.startswith("sqlite"):
    create_schema(engine)

rdb = redis.Redis.from_url(settings.redis_url, decode_responses=True)
service = BookingFlowService(
    gateway=RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret),
    store=SqlBookingStore(SessionLocal, Base.metadata),
    tokens=VerificationTokenStore(rdb, settings.verification_token_ttl_seconds),
    signing_secret=settings.razorpay_key_secret,
    currency=settings.currency,
    gateway_name=settings.gateway_name,
    bookings_table=settings.bookings_table,
    require_verification_token=settings.require_verification_token,
    service_name=settings.service_name,
)


def get_booking_service() -> BookingFlowService:
    """Dependency returning the process-wide flow service."""

    return service


app = FastAPI(title="BookPay Booking API")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Bind a trace id and record request count and latency.

    Requests that match no route share the `unmatched` label.
    """

    trace_id_ctx.set(request.headers.get("x-correlation-id") or str(uuid4()))
    start = perf_counter()
    route = "unmatched"
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


@app.exception_handler(BookingFlowError)
async def booking_flow_error_handler(_: Request, exc: BookingFlowError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400 instead of FastAPI's default 422."""

    logger.info("invalid request body path=%s errors=%s", request.url.path, exc.errors())
    fields = sorted({".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()} - {""})
    message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(status_code=400, content=InvalidInput(message).to_body())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error path=%s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=UnhandledCrash("Internal server error").to_body())


@app.get("/", response_class=PlainTextResponse)
def root():
    """Liveness string for humans and uptime checks."""

    return "Backend is running"


@app.get("/get-razorpay-key")
def get_razorpay_key(flow: BookingFlowService = Depends(get_booking_service)):
    """Public key id the checkout widget needs."""

    return {"key": flow.public_key()}


@app.post("/create-order")
def create_order(
    req: OrderCreateRequest | None = None,
    flow: BookingFlowService = Depends(get_booking_service),
):
    """Create a gateway order and return its descriptor verbatim."""

    return flow.create_order(req.amount if req else None)


@app.post("/verify-payment", response_model=PaymentVerifyResponse)
def verify_payment(req: PaymentVerifyRequest, flow: BookingFlowService = Depends(get_booking_service)):
    """Check the checkout signature; issue a verification token on success."""

    token = flow.verify_payment(req)
    return PaymentVerifyResponse(success=True, verification_token=token)


@app.post("/save-booking", response_model=BookingCreateResponse)
def save_booking(req: BookingCreateRequest, flow: BookingFlowService = Depends(get_booking_service)):
    """Persist one paid booking row."""

    row = flow.save_booking(req)
    return BookingCreateResponse(success=True, data=row)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


log_registered_routes(app)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
