"""Compute the checkout signature the gateway would send for an order/payment pair.

Useful for exercising `POST /verify-payment` by hand without a real checkout.
"""

import argparse
import hashlib
import hmac
import json
import os


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Signature Razorpay Checkout hands the frontend after a successful payment."""

    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def main() -> None:
    """Parse CLI args and print a ready-to-post verify-payment body."""

    parser = argparse.ArgumentParser(description="Sign a Razorpay order/payment pair.")
    parser.add_argument("--order-id", required=True)
    parser.add_argument("--payment-id", required=True)
    parser.add_argument(
        "--secret",
        default=os.getenv("RAZORPAY_KEY_SECRET"),
        help="Signing secret (defaults to RAZORPAY_KEY_SECRET)",
    )
    args = parser.parse_args()

    if not args.secret:
        raise SystemExit("Provide --secret or set RAZORPAY_KEY_SECRET")

    body = {
        "razorpay_order_id": args.order_id,
        "razorpay_payment_id": args.payment_id,
        "razorpay_signature": payment_signature(args.order_id, args.payment_id, args.secret),
    }
    print(json.dumps(body, indent=2))


if __name__ == "__main__":
    main()
