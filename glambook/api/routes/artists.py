from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from glambook.api.deps import get_session, require_role
from glambook.api.schemas.booking import (
    ArtistAvailabilityResponse,
    AvailabilityConfigResponse,
    DaySlots,
    SlotInfo,
    SlotListResponse,
)
from glambook.core.config import settings
from glambook.models.artist import Artist, ArtistPublic
from glambook.models.availability import ArtistAvailabilityConfig, Slot
from glambook.models.user import User, UserRole
from glambook.services import availability_service
from glambook.services.artist_service import get_artist, get_artist_for_user, list_artists

router = APIRouter(prefix="/artists", tags=["artists"])
admin_router = APIRouter(prefix="/admin/artists", tags=["admin"])


def _slot_info(s: Slot) -> SlotInfo:
    return SlotInfo(
        start_utc=s.start_utc,
        end_utc=s.end_utc,
        start_local=s.start_local,
        end_local=s.end_local,
        available=s.available,
    )


def _to_public(artist: Artist) -> ArtistPublic:
    config = availability_service.resolve_config(artist)
    return ArtistPublic(
        id=artist.id,
        user_id=artist.user_id,
        display_name=artist.display_name,
        bio=artist.bio,
        category=artist.category,
        default_price=artist.default_price,
        is_available=config is not None and config.is_available,
    )


def _config_response(artist_id: int, config: ArtistAvailabilityConfig | None, stored: bool) -> AvailabilityConfigResponse:
    return AvailabilityConfigResponse(
        artist_id=artist_id,
        is_default=not stored,
        availability_settings=config.to_storage() if config else None,
    )


def _today_local() -> date:
    return datetime.now(UTC).astimezone(availability_service.platform_tz()).date()


@router.get("", response_model=list[ArtistPublic])
async def get_artists(
    category: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> list[ArtistPublic]:
    return [_to_public(a) for a in await list_artists(session, category=category)]


# Declared before /{artist_id} so "me" is not parsed as an id
@router.get("/me/availability", response_model=AvailabilityConfigResponse)
async def get_my_availability(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ARTIST)),
) -> AvailabilityConfigResponse:
    artist = await get_artist_for_user(session, current_user.id)
    config, stored = await availability_service.get_availability_config(session, artist.id)
    return _config_response(artist.id, config, stored)


@router.put("/me/availability", response_model=AvailabilityConfigResponse)
async def put_my_availability(
    body: ArtistAvailabilityConfig,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ARTIST)),
) -> AvailabilityConfigResponse:
    artist = await get_artist_for_user(session, current_user.id)
    config = await availability_service.update_availability_config(session, artist.id, body, current_user)
    return _config_response(artist.id, config, True)


@router.get("/{artist_id}", response_model=ArtistPublic)
async def get_artist_detail(
    artist_id: int,
    session: AsyncSession = Depends(get_session),
) -> ArtistPublic:
    return _to_public(await get_artist(session, artist_id))


@router.get("/{artist_id}/availability", response_model=ArtistAvailabilityResponse)
async def artist_availability(
    artist_id: int,
    date_param: date | None = Query(None, alias="date"),
    days: int = Query(default=settings.default_availability_days, ge=1),
    session: AsyncSession = Depends(get_session),
) -> ArtistAvailabilityResponse:
    """Calendar view: one entry per day starting at `date` (default today), days off included."""
    artist = await get_artist(session, artist_id)
    start = date_param or _today_local()
    accepting, day_list = await availability_service.compute_day_availability(session, artist_id, start, days)
    return ArtistAvailabilityResponse(
        artist_id=artist_id,
        artist_name=artist.display_name,
        is_available=accepting,
        timezone=settings.platform_timezone,
        message=None if accepting else "This artist is not currently accepting bookings",
        availability=[
            DaySlots(
                date=d.date,
                day_label=d.date.strftime("%a"),
                is_day_off=d.is_day_off,
                slots=[_slot_info(s) for s in d.slots],
            )
            for d in day_list
        ],
    )


@router.get("/{artist_id}/slots", response_model=SlotListResponse)
async def artist_slots(
    artist_id: int,
    start: date = Query(...),
    end: date | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> SlotListResponse:
    """Flat, ordered slot list for an inclusive date range."""
    slots = await availability_service.compute_slots(session, artist_id, start, end)
    return SlotListResponse(
        artist_id=artist_id,
        start=start,
        end=end or start,
        slots=[_slot_info(s) for s in slots],
    )


@admin_router.get("/{artist_id}/availability", response_model=AvailabilityConfigResponse)
async def admin_get_availability(
    artist_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
) -> AvailabilityConfigResponse:
    config, stored = await availability_service.get_availability_config(session, artist_id)
    return _config_response(artist_id, config, stored)


@admin_router.put("/{artist_id}/availability", response_model=AvailabilityConfigResponse)
async def admin_put_availability(
    artist_id: int,
    body: ArtistAvailabilityConfig,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
) -> AvailabilityConfigResponse:
    config = await availability_service.update_availability_config(session, artist_id, body, current_user)
    return _config_response(artist_id, config, True)
