"""Shared fixtures: fake gateway/store/redis injected into the real app."""

import hashlib
import hmac
import os

os.environ["POSTGRES_DSN"] = "sqlite://"
os.environ["TRACING_ENABLED"] = "false"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_secret"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from bookpay.common.errors import GatewayCallError, StoreError  # noqa: E402
from bookpay.services.booking_api.gateway import RazorpayGateway  # noqa: E402
from bookpay.services.booking_api.main import app, get_booking_service  # noqa: E402
from bookpay.services.booking_api.service import BookingFlowService  # noqa: E402
from bookpay.services.booking_api.tokens import VerificationTokenStore  # noqa: E402

SECRET = "test_secret"


def checkout_signature(order_id: str, payment_id: str, secret: str = SECRET) -> str:
    """What Razorpay Checkout returns to the browser for a completed payment."""

    return hmac.new(secret.encode("utf-8"), f"{order_id}|{payment_id}".encode("utf-8"), hashlib.sha256).hexdigest()


class FakeGateway(RazorpayGateway):
    """Real SDK signature checks; order creation answered locally."""

    def __init__(self) -> None:
        super().__init__("rzp_test_key", SECRET)
        self.calls: list[dict] = []
        self.error: str | None = None

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict:
        self.calls.append({"amount": amount_minor, "currency": currency, "receipt": receipt})
        if self.error:
            raise GatewayCallError(self.error)
        return {
            "id": f"order_{len(self.calls)}",
            "entity": "order",
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }


class FakeStore:
    def __init__(self) -> None:
        self.inserts: list[tuple[str, dict]] = []
        self.error: str | None = None

    def insert(self, table: str, record: dict) -> dict:
        if self.error:
            raise StoreError(self.error)
        self.inserts.append((table, record))
        return {"id": f"bk_{len(self.inserts)}", **record}


class FakeRedis:
    """Just the two commands the token store uses."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    def getdel(self, key: str) -> str | None:
        self.ttls.pop(key, None)
        return self.data.pop(key, None)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def tokens(fake_redis):
    return VerificationTokenStore(fake_redis, ttl_seconds=900)


@pytest.fixture
def flow(gateway, store, tokens):
    return BookingFlowService(
        gateway=gateway,
        store=store,
        tokens=tokens,
        signing_secret=SECRET,
        clock=lambda: 1_760_000_000.123,
    )


@pytest.fixture
def client(flow):
    app.dependency_overrides[get_booking_service] = lambda: flow
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def booking_payload():
    """Frontend-shaped save-booking body without payment/verification fields."""

    return {
        "customer": {
            "firstName": "Asha",
            "lastName": "Rao",
            "email": "asha@example.com",
            "phone": "+919800000000",
            "address": "12 MG Road",
            "city": "Bengaluru",
            "zip": "560001",
            "message": "Ring twice",
        },
        "services": [{"id": "deep-clean", "name": "Deep cleaning", "price": 500}],
        "booking": {"year": 2026, "month": 0, "day": 15, "time": "10:30 AM"},
        "totalAmount": 500,
        "userId": "user-42",
    }
