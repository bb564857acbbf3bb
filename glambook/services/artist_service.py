from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glambook.core.errors import ArtistNotFoundError, PermissionDeniedError
from glambook.models.artist import Artist
from glambook.models.user import User


async def get_artist(session: AsyncSession, artist_id: int, *, for_update: bool = False) -> Artist:
    q = select(Artist).where(Artist.id == artist_id)
    if for_update:
        # Row lock serialises reservations for one artist (no-op on SQLite)
        q = q.with_for_update()
    result = await session.execute(q)
    artist = result.scalar_one_or_none()
    if not artist:
        raise ArtistNotFoundError(f"Artist {artist_id} not found", details={"artist_id": artist_id})
    return artist


async def get_artist_for_user(session: AsyncSession, user_id: int) -> Artist:
    result = await session.execute(select(Artist).where(Artist.user_id == user_id))
    artist = result.scalar_one_or_none()
    if not artist:
        raise ArtistNotFoundError("No artist profile for this user", details={"user_id": user_id})
    return artist


async def list_artists(session: AsyncSession, category: str | None = None) -> list[Artist]:
    q = select(Artist).order_by(Artist.display_name)
    if category:
        q = q.where(Artist.category == category)
    result = await session.execute(q)
    return list(result.scalars().all())


def ensure_can_manage(artist: Artist, actor: User) -> None:
    """Only the artist themself or an admin may change an artist's schedule."""
    if actor.is_admin or artist.user_id == actor.id:
        return
    raise PermissionDeniedError(
        "Not allowed to manage this artist",
        details={"artist_id": artist.id, "user_id": actor.id},
    )
