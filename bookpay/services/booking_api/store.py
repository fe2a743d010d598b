"""Persistence adapter: one-row inserts into the booking tables."""

from typing import Any, Protocol

from sqlalchemy import MetaData, insert
from sqlalchemy.exc import SQLAlchemyError

from bookpay.common.errors import StoreError


class BookingStore(Protocol):
    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]: ...


class SqlBookingStore:
    """Executes `INSERT ... RETURNING` against tables registered in `metadata`."""

    def __init__(self, session_factory, metadata: MetaData) -> None:
        self.session_factory = session_factory
        self.metadata = metadata

    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        target = self.metadata.tables.get(table)
        if target is None:
            raise StoreError(f"unknown table: {table}")
        with self.session_factory() as db:
            try:
                row = db.execute(insert(target).values(**record).returning(*target.c)).mappings().one()
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                # Surface the driver's message, not SQLAlchemy's wrapper text.
                raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc
        return dict(row)
