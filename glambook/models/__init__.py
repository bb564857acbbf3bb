from glambook.models.user import User, UserPublic, UserRole
from glambook.models.artist import Artist, ArtistPublic
from glambook.models.booking import Booking, BookingPublic, BookingStatus
from glambook.models.availability import ArtistAvailabilityConfig, DayAvailability, Slot

__all__ = [
    "User",
    "UserPublic",
    "UserRole",
    "Artist",
    "ArtistPublic",
    "Booking",
    "BookingPublic",
    "BookingStatus",
    "ArtistAvailabilityConfig",
    "DayAvailability",
    "Slot",
]
