"""API request/response schemas for booking API endpoints."""

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class CamelModel(BaseModel):
    """Accept both the frontend's camelCase keys and snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)


class OrderCreateRequest(BaseModel):
    """Body of `POST /create-order`; amount is in major units (rupees)."""

    amount: Decimal | None = None


class PaymentVerifyRequest(BaseModel):
    """Checkout callback fields forwarded by the frontend."""

    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class PaymentVerifyResponse(BaseModel):
    success: bool
    verification_token: str | None = None


class Customer(CamelModel):
    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(default="", alias="lastName")
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str | None = None
    zip: str | None = None
    message: str | None = None


class BookingSlot(CamelModel):
    """Schedule picked in the frontend calendar; `month` is 0-indexed."""

    year: int
    month: int
    day: int = Field(validation_alias=AliasChoices("day", "date"))
    time: str = Field(min_length=1)


class PaymentReference(CamelModel):
    order_id: str | None = Field(default=None, alias="orderId")
    payment_id: str = Field(alias="paymentId", min_length=1)
    method: str | None = None


class BookingCreateRequest(CamelModel):
    """Body of `POST /save-booking`.

    The payment reference arrives either nested under `payment` or flattened
    as `paymentId` (with optional `orderId` / `paymentMethod`).
    """

    customer: Customer
    services: list[Any] = Field(min_length=1)
    booking: BookingSlot
    total_amount: Decimal = Field(alias="totalAmount", gt=0)
    payment: PaymentReference | None = None
    payment_id: str | None = Field(default=None, alias="paymentId")
    order_id: str | None = Field(default=None, alias="orderId")
    payment_method: str | None = Field(default=None, alias="paymentMethod")
    user_id: str | None = Field(default=None, alias="userId")
    verification_token: str | None = Field(default=None, alias="verificationToken")

    @model_validator(mode="after")
    def _require_payment_reference(self) -> "BookingCreateRequest":
        if self.payment is None and not self.payment_id:
            raise ValueError("paymentId or payment.paymentId is required")
        return self

    def payment_reference(self, default_method: str) -> PaymentReference:
        """Collapse the two accepted payment shapes into one reference."""

        if self.payment is not None:
            ref = self.payment
        else:
            ref = PaymentReference(
                order_id=self.order_id,
                payment_id=self.payment_id,
                method=self.payment_method,
            )
        return PaymentReference(
            order_id=ref.order_id,
            payment_id=ref.payment_id,
            method=ref.method or default_method,
        )


class BookingCreateResponse(BaseModel):
    success: bool
    data: dict[str, Any]
