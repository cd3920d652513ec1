"""Shared helpers for engine and API tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from tasteid.models.catalog import Album, Review
from tasteid.services.taste_store import ReviewRecord

BASE_TIME = datetime(2024, 3, 1, 9, 0, 0)

DECADE_DATES = (
    date(1959, 8, 17),
    date(1968, 3, 1),
    date(1977, 6, 10),
    date(1986, 9, 23),
    date(1994, 4, 19),
)


@dataclass(frozen=True, slots=True)
class ReviewSpec:
    """Album plus rating for seeding one review."""

    album_id: str
    rating: float
    artist_name: str = "Test Artist"
    genres: tuple[str, ...] = ("rock",)
    release_date: date | None = date(1994, 4, 19)
    text: str | None = None
    quick_rate: bool = False


def record(
    album_id: str,
    rating: float,
    *,
    day: int = 0,
    artist_name: str = "Test Artist",
    genres: Iterable[str] = ("rock",),
    release_date: date | str | None = date(1994, 4, 19),
    text: str | None = None,
    quick_rate: bool = False,
    user_id: str = "listener",
) -> ReviewRecord:
    """Build an aggregator record without touching the database."""
    return ReviewRecord(
        user_id=user_id,
        album_id=album_id,
        rating=rating,
        created_at=BASE_TIME + timedelta(days=day),
        artist_name=artist_name,
        genres=tuple(genres),
        release_date=release_date,
        text=text,
        quick_rate=quick_rate,
    )


async def add_reviews(session: AsyncSession, user_id: str, specs: Iterable[ReviewSpec]) -> None:
    """Insert albums (once) and one review per ReviewSpec, a day apart in order."""
    for offset, spec in enumerate(specs):
        if await session.get(Album, spec.album_id) is None:
            session.add(
                Album(
                    id=spec.album_id,
                    title=spec.album_id.replace("-", " ").title(),
                    artist_name=spec.artist_name,
                    genres=list(spec.genres),
                    release_date=spec.release_date,
                )
            )
            await session.flush()
        session.add(
            Review(
                user_id=user_id,
                album_id=spec.album_id,
                rating=spec.rating,
                quick_rate=spec.quick_rate,
                text=spec.text,
                created_at=BASE_TIME + timedelta(days=offset),
            )
        )
    await session.commit()


def jazz_and_rock_specs(prefix: str = "album", rating: float = 6.5) -> list[ReviewSpec]:
    """Seven jazz and three rock albums spread evenly over five decades."""
    specs = [
        ReviewSpec(
            f"{prefix}-jazz-{index}",
            rating,
            artist_name=f"Jazz Artist {index}",
            genres=("Jazz",),
            release_date=DECADE_DATES[index % len(DECADE_DATES)],
        )
        for index in range(7)
    ]
    specs.extend(
        ReviewSpec(
            f"{prefix}-rock-{index}",
            rating,
            artist_name=f"Rock Artist {index}",
            genres=("Rock",),
            release_date=DECADE_DATES[(index + 2) % len(DECADE_DATES)],
        )
        for index in range(3)
    )
    return specs
