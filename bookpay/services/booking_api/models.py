"""Booking API database models.

One row per completed, paid booking. Rows are written once and never updated
by this service.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Date, DateTime, Numeric, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from bookpay.common.db import Base


class Booking(Base):
    """Persisted service reservation with its payment reference."""

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    customer_name: Mapped[str] = mapped_column(String)
    customer_email: Mapped[str] = mapped_column(String, index=True)
    customer_phone: Mapped[str] = mapped_column(String)
    customer_address: Mapped[str] = mapped_column(String)
    customer_city: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_zip: Mapped[str | None] = mapped_column(String, nullable=True)
    customer_message: Mapped[str | None] = mapped_column(String, nullable=True)
    services: Mapped[list] = mapped_column(JSON().with_variant(JSONB(), "postgresql"))
    booking_date: Mapped[date] = mapped_column(Date)
    booking_time: Mapped[str] = mapped_column(String)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    order_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    payment_id: Mapped[str] = mapped_column(String, index=True)
    payment_method: Mapped[str] = mapped_column(String)
    payment_status: Mapped[str] = mapped_column(String)
    payment_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
