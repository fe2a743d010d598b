"""Payment gateway adapter around the Razorpay SDK."""

from typing import Protocol

import razorpay

from bookpay.common.errors import GatewayCallError


class PaymentGateway(Protocol):
    public_key: str

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict: ...

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool: ...


class RazorpayGateway:
    """Creates pending orders and checks checkout signatures through `razorpay.Client`.

    Order creation is one attempt per call. Signature checks are local to the
    SDK and use the key secret the client was built with.
    """

    def __init__(self, key_id: str, key_secret: str, client: razorpay.Client | None = None) -> None:
        self.public_key = key_id
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict:
        try:
            return self.client.order.create(
                data={"amount": amount_minor, "currency": currency, "receipt": receipt}
            )
        except Exception as exc:
            raise GatewayCallError(str(exc)) from exc

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except razorpay.errors.SignatureVerificationError:
            return False
        except TypeError:
            # hmac.compare_digest rejects non-ASCII str input.
            return False
        return True
