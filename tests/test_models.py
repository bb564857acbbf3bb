from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import DateTime, select

from glambook.core.timeutil import to_naive_utc, utc_naive_now
from glambook.models.artist import Artist
from glambook.models.booking import Booking, BookingStatus


@pytest.mark.parametrize(
    "column",
    [
        Booking.__table__.c.start_at,
        Booking.__table__.c.created_at,
        Booking.__table__.c.updated_at,
        Artist.__table__.c.created_at,
        Artist.__table__.c.updated_at,
    ],
)
def test_timestamp_columns_are_naive(column):
    assert isinstance(column.type, DateTime)
    assert column.type.timezone is False
    assert column.nullable is False


@pytest.mark.asyncio
async def test_naive_utc_round_trips_through_storage(session, artist, customer):
    start = datetime(2030, 1, 7, 10, 0)
    session.add(
        Booking(
            artist_id=artist.id,
            customer_id=customer.id,
            start_at=start,
            duration_minutes=60,
            service_type="bridal",
            status=BookingStatus.CONFIRMED,
        )
    )
    await session.commit()
    session.expunge_all()

    stored = (await session.execute(select(Booking))).scalar_one()
    assert stored.start_at == start
    assert stored.start_at.tzinfo is None
    assert stored.created_at.tzinfo is None
    assert stored.end_at == datetime(2030, 1, 7, 11, 0)


def test_time_helpers():
    plus_two = timezone(timedelta(hours=2))
    assert to_naive_utc(datetime(2030, 1, 7, 12, 0, tzinfo=plus_two)) == datetime(2030, 1, 7, 10, 0)
    assert to_naive_utc(datetime(2030, 1, 7, 10, 0)) == datetime(2030, 1, 7, 10, 0)
    assert utc_naive_now().tzinfo is None
