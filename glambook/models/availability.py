import re
from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MIN_SESSION_MINUTES = 15
MAX_SESSION_MINUTES = 480
MAX_BREAK_MINUTES = 120

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$|^24:00$")


def parse_hhmm(value: str) -> int:
    """"HH:MM" -> minutes after midnight. "24:00" is allowed as end of day."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


class ArtistAvailabilityConfig(BaseModel):
    """
    Weekly working-hour template for one artist.

    Weekdays use 0=Sunday ... 6=Saturday. Times are wall-clock in the
    platform timezone. Serialised with camelCase keys, the shape the
    artist record has always stored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    working_days: list[int] = Field(default_factory=list)
    start_time: str = "09:00"
    end_time: str = "17:00"
    session_duration: int = Field(default=60, ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES)
    break_between_sessions: int = Field(default=0, ge=0, le=MAX_BREAK_MINUTES)
    is_available: bool = True

    @field_validator("working_days")
    @classmethod
    def _check_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"working day {day} must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        if not _HHMM.match(v):
            raise ValueError(f"{v!r} is not a HH:MM time")
        return v

    @model_validator(mode="after")
    def _check_window(self) -> "ArtistAvailabilityConfig":
        if self.start_minute >= self.end_minute:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def start_minute(self) -> int:
        return parse_hhmm(self.start_time)

    @property
    def end_minute(self) -> int:
        return parse_hhmm(self.end_time)

    def works_on(self, d: date) -> bool:
        # isoweekday: Monday=1 ... Sunday=7
        return d.isoweekday() % 7 in self.working_days

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class Slot:
    """A generated appointment interval. Never persisted."""

    date: date
    start_utc: datetime  # naive UTC
    end_utc: datetime  # naive UTC
    start_local: str
    end_local: str
    booked: bool = False

    @property
    def available(self) -> bool:
        return not self.booked


@dataclass(frozen=True)
class DayAvailability:
    date: date
    is_day_off: bool
    slots: list[Slot]
