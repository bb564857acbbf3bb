import math

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from glambook.api.deps import get_current_user, get_session, require_role
from glambook.api.schemas.booking import BookingPage, BookRequest, StatusUpdateRequest
from glambook.models.booking import Booking, BookingPublic, BookingStatus
from glambook.models.user import User, UserRole
from glambook.services.artist_service import get_artist, get_artist_for_user
from glambook.services.booking_service import (
    cancel_booking,
    get_booking_for_actor,
    list_all_bookings,
    list_bookings_for_artist,
    list_bookings_for_customer,
    reserve_slot,
    update_booking_status,
)
from glambook.services.email_service import send_booking_cancelled_email, send_booking_request_email

router = APIRouter(prefix="/bookings", tags=["bookings"])
admin_router = APIRouter(prefix="/admin/bookings", tags=["admin"])


def _to_public(b: Booking) -> BookingPublic:
    return BookingPublic(
        id=b.id,
        artist_id=b.artist_id,
        customer_id=b.customer_id,
        start_at=b.start_at,
        end_at=b.end_at,
        duration_minutes=b.duration_minutes,
        service_type=b.service_type,
        status=b.status,
        price=b.price,
        notes=b.notes,
        location=b.location,
        created_at=b.created_at,
        updated_at=b.updated_at,
    )


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book_slot(
    body: BookRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await reserve_slot(
        session,
        artist_id=body.artist_id,
        customer_id=current_user.id,
        requested_start=body.start_utc,
        service_type=body.service_type,
        price=body.price,
        notes=body.notes,
        location=body.location,
    )
    artist = await get_artist(session, body.artist_id)
    # Sent after the response (uses sync SMTP)
    background_tasks.add_task(
        send_booking_request_email,
        to_email=current_user.email,
        recipient_name=current_user.full_name,
        artist_name=artist.display_name,
        service_type=booking.service_type,
        start_utc=booking.start_at,
        duration_minutes=booking.duration_minutes,
    )
    return _to_public(booking)


@router.get("", response_model=list[BookingPublic])
async def list_my_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[BookingPublic]:
    bookings = await list_bookings_for_customer(session, current_user.id, status=status_filter)
    return [_to_public(b) for b in bookings]


@router.get("/artist", response_model=list[BookingPublic])
async def list_artist_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ARTIST)),
) -> list[BookingPublic]:
    artist = await get_artist_for_user(session, current_user.id)
    bookings = await list_bookings_for_artist(session, artist.id, status=status_filter)
    return [_to_public(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingPublic)
async def get_one_booking(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    return _to_public(await get_booking_for_actor(session, booking_id, current_user))


@router.put("/{booking_id}/cancel", response_model=BookingPublic)
async def cancel_one_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await cancel_booking(session, booking_id, current_user)
    customer = await session.get(User, booking.customer_id)
    artist = await get_artist(session, booking.artist_id)
    if customer:
        background_tasks.add_task(
            send_booking_cancelled_email,
            to_email=customer.email,
            recipient_name=customer.full_name,
            artist_name=artist.display_name,
            service_type=booking.service_type,
            start_utc=booking.start_at,
            duration_minutes=booking.duration_minutes,
        )
    return _to_public(booking)


@router.put("/{booking_id}/status", response_model=BookingPublic)
async def change_booking_status(
    booking_id: int,
    body: StatusUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ARTIST)),
) -> BookingPublic:
    booking = await update_booking_status(
        session,
        booking_id,
        body.status,
        current_user,
        notes=body.notes,
        force=body.force,
    )
    return _to_public(booking)


@admin_router.get("", response_model=BookingPage)
async def list_all_bookings_admin(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
) -> BookingPage:
    """Admin endpoint: every booking on the platform, newest first."""
    bookings, total = await list_all_bookings(session, status=status_filter, page=page, page_size=page_size)
    return BookingPage(
        bookings=[_to_public(b) for b in bookings],
        total=total,
        pages=math.ceil(total / page_size),
        page=page,
        page_size=page_size,
    )
