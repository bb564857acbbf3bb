from datetime import date, datetime

from pydantic import BaseModel, Field

from glambook.models.booking import BookingPublic, BookingStatus


class SlotInfo(BaseModel):
    start_utc: datetime
    end_utc: datetime
    start_local: str  # HH:MM, platform timezone
    end_local: str
    available: bool


class DaySlots(BaseModel):
    date: date
    day_label: str  # Mon, Tue, ...
    is_day_off: bool
    slots: list[SlotInfo]


class ArtistAvailabilityResponse(BaseModel):
    artist_id: int
    artist_name: str
    is_available: bool
    timezone: str
    message: str | None = None
    availability: list[DaySlots]


class SlotListResponse(BaseModel):
    artist_id: int
    start: date
    end: date
    slots: list[SlotInfo]


class AvailabilityConfigResponse(BaseModel):
    artist_id: int
    is_default: bool  # True when the artist never saved a config
    availability_settings: dict | None


class BookRequest(BaseModel):
    artist_id: int
    start_utc: datetime
    service_type: str = Field(min_length=1)
    price: float = Field(default=0.0, ge=0)
    notes: str | None = None
    location: str | None = None


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    notes: str | None = None
    force: bool = False


class BookingPage(BaseModel):
    bookings: list[BookingPublic]
    total: int
    pages: int
    page: int
    page_size: int
