"""Drive create-order -> verify-payment -> save-booking against a running API.

The payment itself happens out of band in real checkouts; here the payment id
is invented and signed locally with the shared secret.
"""

import argparse
import os
from datetime import date
from uuid import uuid4

import httpx

from sign_payment import payment_signature


def run(base_url: str, amount: int, secret: str) -> None:
    """Execute the three phases and print each response."""

    with httpx.Client(base_url=base_url, timeout=10.0) as client:
        headers = {"x-correlation-id": str(uuid4())}

        resp = client.post("/create-order", json={"amount": amount}, headers=headers)
        print(f"create-order status={resp.status_code} body={resp.text}")
        resp.raise_for_status()
        order_id = resp.json()["id"]

        payment_id = f"pay_smoke_{uuid4().hex[:14]}"
        resp = client.post(
            "/verify-payment",
            json={
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": payment_signature(order_id, payment_id, secret),
            },
            headers=headers,
        )
        print(f"verify-payment status={resp.status_code} body={resp.text}")
        resp.raise_for_status()
        token = resp.json().get("verification_token")

        today = date.today()
        resp = client.post(
            "/save-booking",
            json={
                "customer": {
                    "firstName": "Smoke",
                    "lastName": "Test",
                    "email": "smoke@example.com",
                    "phone": "+910000000000",
                    "address": "1 Test Street",
                },
                "services": ["smoke-check"],
                "booking": {"year": today.year, "month": today.month - 1, "day": today.day, "time": "10:00"},
                "totalAmount": amount,
                "payment": {"orderId": order_id, "paymentId": payment_id},
                "verificationToken": token,
            },
            headers=headers,
        )
        print(f"save-booking status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default="http://localhost:10000")
    parser.add_argument("--amount", type=int, default=500)
    parser.add_argument("--secret", default=os.getenv("RAZORPAY_KEY_SECRET", ""))
    args = parser.parse_args()
    if not args.secret:
        raise SystemExit("Provide --secret or set RAZORPAY_KEY_SECRET")
    run(args.base_url, args.amount, args.secret)
