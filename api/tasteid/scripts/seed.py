"""Seed script for demo albums, reviews, and TasteIDs in local/dev environments."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tasteid.db.session import async_session, init_models
from tasteid.models.catalog import Album, Review
from tasteid.services import tasteid_service
from tasteid.services.taste_store import SqlTasteStore

logger = logging.getLogger("tasteid.scripts.seed")

SEED_EPOCH = datetime(2024, 1, 1, 12, 0, 0)


@dataclass(frozen=True)
class SeedAlbum:
    """Album definition for the demo catalog."""
    id: str
    title: str
    artist_name: str
    genres: tuple[str, ...]
    release_date: date | None


@dataclass(frozen=True)
class SeedReview:
    """A demo user's rating of one seed album."""
    album_id: str
    rating: float
    text: str | None = None
    quick_rate: bool = False


@dataclass(frozen=True)
class SeedListener:
    user_id: str
    reviews: tuple[SeedReview, ...] = field(default_factory=tuple)


SEED_ALBUMS: tuple[SeedAlbum, ...] = (
    SeedAlbum("demo-kind-of-blue", "Kind of Blue", "Miles Davis", ("Jazz", "Modal Jazz"), date(1959, 8, 17)),
    SeedAlbum("demo-a-love-supreme", "A Love Supreme", "John Coltrane", ("Jazz", "Spiritual Jazz"), date(1965, 1, 1)),
    SeedAlbum("demo-mingus-ah-um", "Mingus Ah Um", "Charles Mingus", ("Jazz", "Hard Bop"), date(1959, 10, 1)),
    SeedAlbum("demo-ok-computer", "OK Computer", "Radiohead", ("Alternative Rock", "Art Rock"), date(1997, 5, 21)),
    SeedAlbum("demo-in-rainbows", "In Rainbows", "Radiohead", ("Alternative Rock",), date(2007, 10, 10)),
    SeedAlbum("demo-illmatic", "Illmatic", "Nas", ("Hip Hop", "East Coast Hip Hop"), date(1994, 4, 19)),
    SeedAlbum("demo-discovery", "Discovery", "Daft Punk", ("Electronic", "House"), date(2001, 3, 12)),
    SeedAlbum("demo-blue", "Blue", "Joni Mitchell", ("Folk", "Singer-Songwriter"), date(1971, 6, 22)),
)

SEED_LISTENERS: tuple[SeedListener, ...] = (
    SeedListener(
        "demo-jazz-head",
        (
            SeedReview(
                "demo-kind-of-blue",
                9.5,
                "The modal approach leaves so much space; every solo sounds like a conversation you overhear.",
            ),
            SeedReview("demo-a-love-supreme", 9.0, "Devotional and relentless, a suite that earns every minute."),
            SeedReview("demo-mingus-ah-um", 8.0),
            SeedReview("demo-ok-computer", 6.0, "Admire it more than I love it."),
        ),
    ),
    SeedListener(
        "demo-rock-fan",
        (
            SeedReview("demo-ok-computer", 9.0, "Paranoid, gorgeous and still ahead of its time after all these years."),
            SeedReview("demo-in-rainbows", 8.5),
            SeedReview("demo-kind-of-blue", 7.0),
            SeedReview("demo-blue", 4, quick_rate=True),
        ),
    ),
    SeedListener(
        "demo-omnivore",
        (
            SeedReview("demo-illmatic", 9.0, "Every bar is dense and every beat is lean."),
            SeedReview("demo-discovery", 8.0),
            SeedReview("demo-blue", 7.5),
            SeedReview("demo-in-rainbows", 6.5),
            SeedReview("demo-a-love-supreme", 3, quick_rate=True),
        ),
    ),
)


async def seed(session: AsyncSession | None = None) -> None:
    """Seed demo data into the database."""
    if session is None:
        await init_models()
        async with async_session() as managed_session:
            await _seed_session(managed_session)
    else:
        await _seed_session(session)


async def _seed_session(session: AsyncSession) -> None:
    """Populate a session with the demo catalog, reviews, and computed TasteIDs."""
    await _ensure_albums(session)
    await _ensure_reviews(session)

    store = SqlTasteStore(session)
    for listener in SEED_LISTENERS:
        taste = await tasteid_service.compute_taste_id(store, listener.user_id)
        logger.info("Seeded %s as %s", listener.user_id, taste.primary_archetype)


async def _ensure_albums(session: AsyncSession) -> None:
    """Create seed albums that do not already exist."""
    existing = set((await session.execute(select(Album.id))).scalars().all())
    for definition in SEED_ALBUMS:
        if definition.id in existing:
            continue
        session.add(
            Album(
                id=definition.id,
                title=definition.title,
                artist_name=definition.artist_name,
                genres=list(definition.genres),
                release_date=definition.release_date,
            )
        )
    await session.commit()


async def _ensure_reviews(session: AsyncSession) -> None:
    """Create each listener's reviews once, spaced a day apart."""
    rows = await session.execute(select(Review.user_id, Review.album_id))
    existing = {(user_id, album_id) for user_id, album_id in rows.all()}
    for listener in SEED_LISTENERS:
        for offset, review in enumerate(listener.reviews):
            if (listener.user_id, review.album_id) in existing:
                continue
            session.add(
                Review(
                    user_id=listener.user_id,
                    album_id=review.album_id,
                    rating=review.rating,
                    quick_rate=review.quick_rate,
                    text=review.text,
                    created_at=SEED_EPOCH + timedelta(days=offset),
                )
            )
    await session.commit()


def main() -> None:
    """CLI entrypoint for seeding demo data."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
