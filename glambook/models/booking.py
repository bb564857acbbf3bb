from datetime import datetime, timedelta
from enum import Enum

from pydantic import NaiveDatetime
from sqlalchemy import Column, DateTime, Index, text
from sqlmodel import Field, SQLModel

from glambook.core.timeutil import utc_naive_now


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
TERMINAL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

_ACTIVE_ONLY = text("status != 'CANCELLED'")


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    # At most one active booking per artist and start instant; cancelling frees the row.
    __table_args__ = (
        Index(
            "uq_bookings_artist_active_start",
            "artist_id",
            "start_at",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    artist_id: int = Field(foreign_key="artists.id", index=True)
    customer_id: int = Field(foreign_key="users.id", index=True)
    start_at: NaiveDatetime = Field(sa_column=Column(DateTime(), nullable=False, index=True))
    duration_minutes: int
    service_type: str
    status: BookingStatus = Field(default=BookingStatus.PENDING, index=True)
    price: float = 0.0
    notes: str | None = None
    location: str | None = None
    created_at: NaiveDatetime = Field(default_factory=utc_naive_now, sa_column=Column(DateTime(), nullable=False))
    updated_at: NaiveDatetime = Field(default_factory=utc_naive_now, sa_column=Column(DateTime(), nullable=False))

    @property
    def end_at(self) -> datetime:
        return self.start_at + timedelta(minutes=self.duration_minutes)


class BookingPublic(SQLModel):
    id: int
    artist_id: int
    customer_id: int
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    service_type: str
    status: BookingStatus
    price: float
    notes: str | None = None
    location: str | None = None
    created_at: datetime
    updated_at: datetime
