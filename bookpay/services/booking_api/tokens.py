"""Short-lived, single-use grants linking a verified payment to its booking.

The verifier issues a grant after a good signature; the booking recorder
consumes it. Only the SHA-256 of the token is kept in Redis.
"""

import hashlib
import json
import secrets
from dataclasses import dataclass


@dataclass(frozen=True)
class VerificationGrant:
    order_id: str
    payment_id: str


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class VerificationTokenStore:
    """Redis-backed grant storage with TTL expiry."""

    def __init__(self, rdb, ttl_seconds: int) -> None:
        self.rdb = rdb
        self.ttl_seconds = ttl_seconds

    def _key(self, token: str) -> str:
        return f"verification:payment:{_hash_token(token)}"

    def issue(self, order_id: str, payment_id: str) -> str:
        """Store a grant for the verified pair and return the plaintext token."""

        token = secrets.token_urlsafe(32)
        payload = json.dumps({"order_id": order_id, "payment_id": payment_id})
        self.rdb.setex(self._key(token), self.ttl_seconds, payload)
        return token

    def consume(self, token: str) -> VerificationGrant | None:
        """Atomically fetch and delete a grant; None when unknown or expired."""

        raw = self.rdb.getdel(self._key(token))
        if raw is None:
            return None
        data = json.loads(raw)
        return VerificationGrant(order_id=data["order_id"], payment_id=data["payment_id"])

    def restore(self, token: str, grant: VerificationGrant) -> None:
        """Put a consumed grant back with a fresh TTL after a failed booking write."""

        payload = json.dumps({"order_id": grant.order_id, "payment_id": grant.payment_id})
        self.rdb.setex(self._key(token), self.ttl_seconds, payload)
