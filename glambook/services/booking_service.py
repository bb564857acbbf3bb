import logging
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from glambook.core.errors import (
    BookingNotFoundError,
    ConflictError,
    InvalidSlotError,
    InvalidTransitionError,
    PermissionDeniedError,
)
from glambook.core.timeutil import to_naive_utc, utc_naive_now
from glambook.models.artist import Artist
from glambook.models.booking import TERMINAL_STATUSES, Booking, BookingStatus
from glambook.models.user import User
from glambook.services import availability_service
from glambook.services.artist_service import get_artist
from glambook.services.availability_service import DefaultAvailabilityPolicy

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


async def reserve_slot(
    session: AsyncSession,
    artist_id: int,
    customer_id: int,
    requested_start: datetime,
    service_type: str,
    price: float = 0.0,
    notes: str | None = None,
    location: str | None = None,
    status: BookingStatus = BookingStatus.PENDING,
    now: datetime | None = None,
    default_policy: DefaultAvailabilityPolicy | None = None,
) -> Booking:
    """
    Book one of the artist's slots.

    The requested start is re-validated against the artist's current config
    and current bookings; nothing the caller saw in an earlier slot listing is
    trusted. Naive datetimes are taken as UTC.

    Raises InvalidSlotError when the start is not a generated slot (wrong
    alignment, outside hours, day off, in the past, artist not accepting),
    ConflictError when an active booking overlaps it.
    """
    if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        raise InvalidTransitionError(f"New bookings cannot start as {status.value}")
    start_utc = to_naive_utc(requested_start)
    current = to_naive_utc(now) if now else utc_naive_now()

    artist = await get_artist(session, artist_id, for_update=True)
    config = availability_service.resolve_config(artist, default_policy)
    if config is None or not config.is_available:
        raise InvalidSlotError(
            "This artist is not currently accepting bookings",
            details={"artist_id": artist_id},
        )

    tz = availability_service.platform_tz()
    local_date = start_utc.replace(tzinfo=UTC).astimezone(tz).date()
    slot = next(
        (s for s in availability_service.generate_day_slots(config, local_date, tz) if s.start_utc == start_utc),
        None,
    )
    if slot is None:
        raise InvalidSlotError(
            "Requested time is not one of the artist's bookable slots",
            details={"artist_id": artist_id, "requested_start": start_utc.isoformat()},
        )
    if slot.start_utc < current:
        raise InvalidSlotError(
            "Requested slot is in the past",
            details={"artist_id": artist_id, "requested_start": start_utc.isoformat()},
        )

    clashes = await availability_service.find_overlapping_bookings(session, artist_id, slot.start_utc, slot.end_utc)
    if clashes:
        logger.info("Slot %s for artist %s already taken by booking %s", start_utc, artist_id, clashes[0].id)
        raise ConflictError(
            "This time slot is already booked",
            details={"artist_id": artist_id, "requested_start": start_utc.isoformat()},
        )

    booking = Booking(
        artist_id=artist_id,
        customer_id=customer_id,
        start_at=slot.start_utc,
        duration_minutes=config.session_duration,
        service_type=service_type,
        status=status,
        price=price,
        notes=notes,
        location=location,
    )
    session.add(booking)
    try:
        await session.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent reservation for the same start
        await session.rollback()
        logger.warning("Concurrent reservation for artist %s at %s rejected", artist_id, start_utc)
        raise ConflictError(
            "This time slot is already booked",
            details={"artist_id": artist_id, "requested_start": start_utc.isoformat()},
        ) from e
    await session.refresh(booking)
    logger.info(
        "Booking %s reserved: artist=%s customer=%s start=%s status=%s",
        booking.id,
        artist_id,
        customer_id,
        booking.start_at,
        booking.status.value,
    )
    return booking


async def get_booking(session: AsyncSession, booking_id: int) -> Booking:
    result = await session.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise BookingNotFoundError(f"Booking {booking_id} not found", details={"booking_id": booking_id})
    return booking


async def _artist_user_id(session: AsyncSession, artist_id: int) -> int | None:
    result = await session.execute(select(Artist.user_id).where(Artist.id == artist_id))
    return result.scalar_one_or_none()


async def get_booking_for_actor(session: AsyncSession, booking_id: int, actor: User) -> Booking:
    """Booking visible to its customer, its artist, or an admin."""
    booking = await get_booking(session, booking_id)
    if actor.is_admin or booking.customer_id == actor.id:
        return booking
    if await _artist_user_id(session, booking.artist_id) == actor.id:
        return booking
    raise PermissionDeniedError("Not allowed to view this booking", details={"booking_id": booking_id})


async def cancel_booking(session: AsyncSession, booking_id: int, actor: User) -> Booking:
    """Cancel a booking. The slot is free again as soon as this flushes."""
    booking = await get_booking_for_actor(session, booking_id, actor)
    if booking.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            f"Cannot cancel a {booking.status.value.lower()} booking",
            details={"booking_id": booking_id, "status": booking.status.value},
        )
    booking.status = BookingStatus.CANCELLED
    booking.updated_at = utc_naive_now()
    session.add(booking)
    await session.flush()
    logger.info("Booking %s cancelled by user %s", booking_id, actor.id)
    return booking


async def update_booking_status(
    session: AsyncSession,
    booking_id: int,
    new_status: BookingStatus,
    actor: User,
    notes: str | None = None,
    force: bool = False,
) -> Booking:
    """
    Move a booking along PENDING -> CONFIRMED -> COMPLETED (or to CANCELLED).

    Only the booking's artist or an admin may do this. Leaving a terminal
    state needs an admin with force=True.
    """
    booking = await get_booking(session, booking_id)
    if not actor.is_admin and await _artist_user_id(session, booking.artist_id) != actor.id:
        raise PermissionDeniedError("Not allowed to change this booking", details={"booking_id": booking_id})
    if force and not actor.is_admin:
        raise PermissionDeniedError("Only admins may force a status change", details={"booking_id": booking_id})

    current = booking.status
    if new_status not in ALLOWED_TRANSITIONS[current] and not force:
        raise InvalidTransitionError(
            f"Cannot change booking from {current.value} to {new_status.value}",
            details={"booking_id": booking_id, "from": current.value, "to": new_status.value},
        )
    if force and current == BookingStatus.CANCELLED and new_status != BookingStatus.CANCELLED:
        # Reviving a cancelled booking must not collide with whoever took the slot since
        clashes = await availability_service.find_overlapping_bookings(
            session, booking.artist_id, booking.start_at, booking.end_at
        )
        if clashes:
            raise ConflictError(
                "The slot has been booked again since this booking was cancelled",
                details={"booking_id": booking_id, "conflicting_booking_id": clashes[0].id},
            )

    booking.status = new_status
    if notes is not None:
        booking.notes = notes
    booking.updated_at = utc_naive_now()
    session.add(booking)
    await session.flush()
    logger.info(
        "Booking %s status %s -> %s by user %s%s",
        booking_id,
        current.value,
        new_status.value,
        actor.id,
        " (forced)" if force else "",
    )
    return booking


async def list_bookings_for_customer(
    session: AsyncSession, customer_id: int, status: BookingStatus | None = None
) -> list[Booking]:
    q = select(Booking).where(Booking.customer_id == customer_id).order_by(Booking.start_at.desc())
    if status:
        q = q.where(Booking.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_bookings_for_artist(
    session: AsyncSession, artist_id: int, status: BookingStatus | None = None
) -> list[Booking]:
    q = select(Booking).where(Booking.artist_id == artist_id).order_by(Booking.start_at)
    if status:
        q = q.where(Booking.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_all_bookings(
    session: AsyncSession,
    status: BookingStatus | None = None,
    page: int = 1,
    page_size: int = 10,
) -> tuple[list[Booking], int]:
    """Admin listing, newest first. Returns (page_items, total)."""
    base = select(Booking)
    count_q = select(func.count()).select_from(Booking)
    if status:
        base = base.where(Booking.status == status)
        count_q = count_q.where(Booking.status == status)
    total = (await session.execute(count_q)).scalar_one()
    result = await session.execute(
        base.order_by(Booking.start_at.desc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all()), total
