import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glambook.core.config import settings
from glambook.core.errors import ConfigurationError, InvalidDateRangeError
from glambook.core.timeutil import to_naive_utc, utc_naive_now
from glambook.models.artist import Artist
from glambook.models.availability import (
    MAX_SESSION_MINUTES,
    ArtistAvailabilityConfig,
    DayAvailability,
    Slot,
    format_minutes,
)
from glambook.models.booking import ACTIVE_STATUSES, Booking
from glambook.models.user import User
from glambook.services.artist_service import ensure_can_manage, get_artist

logger = logging.getLogger(__name__)

# Returns the config to use for an artist that never saved one (None = no slots)
DefaultAvailabilityPolicy = Callable[[], ArtistAvailabilityConfig | None]


def fallback_availability() -> ArtistAvailabilityConfig:
    """Weekdays 10:00-24:00 in 30-minute sessions, no break (values from settings)."""
    return ArtistAvailabilityConfig(
        working_days=settings.fallback_working_days_list,
        start_time=settings.fallback_start_time,
        end_time=settings.fallback_end_time,
        session_duration=settings.fallback_session_duration,
        break_between_sessions=settings.fallback_break_between_sessions,
        is_available=True,
    )


def no_availability() -> None:
    return None


_POLICIES: dict[str, DefaultAvailabilityPolicy] = {
    "fallback": fallback_availability,
    "none": no_availability,
}


def policy_from_settings() -> DefaultAvailabilityPolicy:
    policy = _POLICIES.get(settings.missing_availability_policy)
    if policy is None:
        raise ConfigurationError(
            f"Unknown missing_availability_policy {settings.missing_availability_policy!r}",
            details={"allowed": sorted(_POLICIES)},
        )
    return policy


def platform_tz() -> ZoneInfo:
    try:
        return ZoneInfo(settings.platform_timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown platform timezone {settings.platform_timezone!r}") from e


def _wall_to_utc(d: date, minute: int, tz: ZoneInfo) -> datetime | None:
    """
    Naive UTC instant of a wall-clock time on `d`.

    Repeated wall times (clocks going back) resolve to the first occurrence
    (fold=0). Wall times the clock skips return None.
    """
    wall = datetime.combine(d, time(0, 0)) + timedelta(minutes=minute)
    instant = to_naive_utc(wall.replace(tzinfo=tz, fold=0))
    if instant.replace(tzinfo=UTC).astimezone(tz).replace(tzinfo=None) != wall:
        return None
    return instant


def resolve_config(
    artist: Artist, default_policy: DefaultAvailabilityPolicy | None = None
) -> ArtistAvailabilityConfig | None:
    if artist.availability_settings is None:
        return (default_policy or policy_from_settings())()
    try:
        return ArtistAvailabilityConfig.model_validate(artist.availability_settings)
    except ValidationError as e:
        raise ConfigurationError(
            f"Stored availability for artist {artist.id} is invalid",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def generate_day_slots(config: ArtistAvailabilityConfig, d: date, tz: ZoneInfo) -> list[Slot]:
    """Slot grid for one date, ignoring bookings. Empty on non-working days."""
    if not config.works_on(d):
        return []
    step = config.session_duration + config.break_between_sessions
    slots: list[Slot] = []
    start = config.start_minute
    while start + config.session_duration <= config.end_minute:
        start_utc = _wall_to_utc(d, start, tz)
        if start_utc is not None:
            # Real-time length, even across a DST shift
            slots.append(
                Slot(
                    date=d,
                    start_utc=start_utc,
                    end_utc=start_utc + timedelta(minutes=config.session_duration),
                    start_local=format_minutes(start),
                    end_local=format_minutes(start + config.session_duration),
                )
            )
        start += step
    return slots


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and start_b < end_a


async def find_overlapping_bookings(
    session: AsyncSession, artist_id: int, start: datetime, end: datetime
) -> list[Booking]:
    """Active bookings of the artist whose interval intersects [start, end)."""
    # A booking can start up to one max-length session before `start` and still overlap.
    lookback = start - timedelta(minutes=MAX_SESSION_MINUTES)
    result = await session.execute(
        select(Booking)
        .where(
            Booking.artist_id == artist_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.start_at >= lookback,
            Booking.start_at < end,
        )
        .order_by(Booking.start_at)
    )
    return [b for b in result.scalars().all() if overlaps(b.start_at, b.end_at, start, end)]


def mark_booked(slots: list[Slot], bookings: list[Booking]) -> list[Slot]:
    out: list[Slot] = []
    for s in slots:
        booked = any(overlaps(s.start_utc, s.end_utc, b.start_at, b.end_at) for b in bookings)
        out.append(Slot(s.date, s.start_utc, s.end_utc, s.start_local, s.end_local, booked))
    return out


def _date_range(start_date: date, end_date: date) -> list[date]:
    if end_date < start_date:
        raise InvalidDateRangeError(
            "End date is before start date",
            details={"start": start_date.isoformat(), "end": end_date.isoformat()},
        )
    days = (end_date - start_date).days + 1
    if days > settings.max_availability_range_days:
        raise InvalidDateRangeError(
            f"Date range may span at most {settings.max_availability_range_days} days",
            details={"days": days},
        )
    return [start_date + timedelta(days=i) for i in range(days)]


async def _slots_for_dates(
    session: AsyncSession, artist_id: int, config: ArtistAvailabilityConfig, dates: list[date]
) -> list[Slot]:
    tz = platform_tz()
    grid: list[Slot] = []
    for d in dates:
        grid.extend(generate_day_slots(config, d, tz))
    if not grid:
        return []
    bookings = await find_overlapping_bookings(session, artist_id, grid[0].start_utc, grid[-1].end_utc)
    return mark_booked(grid, bookings)


async def compute_slots(
    session: AsyncSession,
    artist_id: int,
    start_date: date,
    end_date: date | None = None,
    default_policy: DefaultAvailabilityPolicy | None = None,
) -> list[Slot]:
    """
    All slots of an artist for the inclusive date range, each marked booked or not.

    Read-only; ordered by date then start time. An artist who is switched off
    (or has no config under the "none" policy) gets an empty list.
    """
    dates = _date_range(start_date, end_date or start_date)
    artist = await get_artist(session, artist_id)
    config = resolve_config(artist, default_policy)
    if config is None or not config.is_available:
        return []
    return await _slots_for_dates(session, artist_id, config, dates)


async def compute_day_availability(
    session: AsyncSession,
    artist_id: int,
    start_date: date,
    days: int,
    default_policy: DefaultAvailabilityPolicy | None = None,
) -> tuple[bool, list[DayAvailability]]:
    """Calendar view: (accepting_bookings, one entry per date including days off)."""
    if days < 1:
        raise InvalidDateRangeError("days must be at least 1", details={"days": days})
    dates = _date_range(start_date, start_date + timedelta(days=days - 1))
    artist = await get_artist(session, artist_id)
    config = resolve_config(artist, default_policy)
    if config is None or not config.is_available:
        return False, []
    slots = await _slots_for_dates(session, artist_id, config, dates)
    by_date: dict[date, list[Slot]] = {d: [] for d in dates}
    for s in slots:
        by_date[s.date].append(s)
    return True, [DayAvailability(date=d, is_day_off=not config.works_on(d), slots=by_date[d]) for d in dates]


async def get_availability_config(
    session: AsyncSession,
    artist_id: int,
    default_policy: DefaultAvailabilityPolicy | None = None,
) -> tuple[ArtistAvailabilityConfig | None, bool]:
    """Returns (config, is_stored). is_stored is False when the default policy applied."""
    artist = await get_artist(session, artist_id)
    return resolve_config(artist, default_policy), artist.availability_settings is not None


async def update_availability_config(
    session: AsyncSession,
    artist_id: int,
    config: ArtistAvailabilityConfig,
    actor: User,
) -> ArtistAvailabilityConfig:
    """Replace the artist's availability wholesale."""
    artist = await get_artist(session, artist_id)
    ensure_can_manage(artist, actor)
    artist.availability_settings = config.to_storage()
    artist.updated_at = utc_naive_now()
    session.add(artist)
    await session.flush()
    logger.info(
        "Availability updated for artist %s by user %s: days=%s %s-%s session=%d break=%d available=%s",
        artist_id,
        actor.id,
        config.working_days,
        config.start_time,
        config.end_time,
        config.session_duration,
        config.break_between_sessions,
        config.is_available,
    )
    return config
