from typing import Any

from pydantic import NaiveDatetime
from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from glambook.core.timeutil import utc_naive_now


class Artist(SQLModel, table=True):
    __tablename__ = "artists"
    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    display_name: str
    bio: str | None = None
    category: str | None = None
    default_price: float | None = None
    # ArtistAvailabilityConfig stored as one JSON blob (camelCase keys)
    availability_settings: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: NaiveDatetime = Field(default_factory=utc_naive_now, sa_column=Column(DateTime(), nullable=False))
    updated_at: NaiveDatetime = Field(default_factory=utc_naive_now, sa_column=Column(DateTime(), nullable=False))


class ArtistPublic(SQLModel):
    id: int
    user_id: int
    display_name: str
    bio: str | None = None
    category: str | None = None
    default_price: float | None = None
    is_available: bool
