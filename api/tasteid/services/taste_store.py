"""Persistence boundary for reviews, TasteIDs, snapshots, and matches.

Invariants:
- The store never commits on its own; services own the transaction.
- Upserts are single INSERT ... ON CONFLICT statements keyed on the unique
  constraint, so concurrent writers for one key leave exactly one row.
- Match rows are stored under the pair the caller passes; ordering the pair
  is the compatibility service's job.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tasteid.models.catalog import Review
from tasteid.models.taste import TasteID, TasteIDSnapshot, TasteMatch
from tasteid.utils.datetime import utcnow

TASTE_ID_KEY_COLUMNS = {"id", "user_id", "created_at"}
TASTE_MATCH_KEY_COLUMNS = {"id", "user1_id", "user2_id", "created_at"}
SNAPSHOT_KEY_COLUMNS = {"id", "taste_id_id", "created_at"}


@dataclass(frozen=True, slots=True)
class ReviewRecord:
    """Review joined with the album fields the aggregator needs."""

    user_id: str
    album_id: str
    rating: float
    created_at: datetime
    artist_name: str
    genres: Sequence[str] = field(default_factory=tuple)
    release_date: date | datetime | str | None = None
    album_title: str | None = None
    text: str | None = None
    quick_rate: bool = False


class TasteStore(Protocol):
    """Read/write interface the engine depends on."""

    async def get_reviews(self, user_id: str) -> list[ReviewRecord]: ...

    async def get_taste_id(self, user_id: str) -> TasteID | None: ...

    async def list_taste_ids(self, exclude_user_id: str | None = None) -> list[TasteID]: ...

    async def upsert_taste_id(self, user_id: str, values: dict[str, Any]) -> TasteID: ...

    async def append_snapshot(self, taste: TasteID, payload: dict[str, Any]) -> TasteIDSnapshot: ...

    async def list_snapshots(self, taste_id_id: uuid.UUID, limit: int) -> list[TasteIDSnapshot]: ...

    async def get_taste_match(self, user1_id: str, user2_id: str) -> TasteMatch | None: ...

    async def upsert_taste_match(self, user1_id: str, user2_id: str, values: dict[str, Any]) -> TasteMatch: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SqlTasteStore:
    """TasteStore backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _insert(self, model: type):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise RuntimeError(f"Upserts are not supported on the {dialect} dialect")
        return insert(model)

    async def get_reviews(self, user_id: str) -> list[ReviewRecord]:
        result = await self.session.execute(
            select(Review)
            .options(selectinload(Review.album))
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.album_id)
        )
        return _to_records(result.scalars().all())

    async def get_taste_id(self, user_id: str) -> TasteID | None:
        result = await self.session.execute(select(TasteID).where(TasteID.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_taste_ids(self, exclude_user_id: str | None = None) -> list[TasteID]:
        query = select(TasteID)
        if exclude_user_id is not None:
            query = query.where(TasteID.user_id != exclude_user_id)
        result = await self.session.execute(query.order_by(TasteID.user_id))
        return list(result.scalars().all())

    async def upsert_taste_id(self, user_id: str, values: dict[str, Any]) -> TasteID:
        row = {**values, "user_id": user_id}
        row.setdefault("id", uuid.uuid4())
        row.setdefault("created_at", utcnow())
        stmt = self._insert(TasteID).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TasteID.user_id],
            set_={key: stmt.excluded[key] for key in row if key not in TASTE_ID_KEY_COLUMNS},
        )
        await self.session.execute(stmt)
        result = await self.session.execute(
            select(TasteID).where(TasteID.user_id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def append_snapshot(self, taste: TasteID, payload: dict[str, Any]) -> TasteIDSnapshot:
        row = {
            "id": uuid.uuid4(),
            "taste_id_id": taste.id,
            "primary_archetype": taste.primary_archetype,
            "adventureness_score": taste.adventureness_score,
            "review_count": taste.review_count,
            "payload": payload,
            "created_at": taste.last_computed_at,
        }
        stmt = self._insert(TasteIDSnapshot).values(**row)
        # A recompute at the same instant replaces that instant's snapshot.
        stmt = stmt.on_conflict_do_update(
            index_elements=[TasteIDSnapshot.taste_id_id, TasteIDSnapshot.created_at],
            set_={key: stmt.excluded[key] for key in row if key not in SNAPSHOT_KEY_COLUMNS},
        )
        await self.session.execute(stmt)
        result = await self.session.execute(
            select(TasteIDSnapshot)
            .where(TasteIDSnapshot.taste_id_id == taste.id, TasteIDSnapshot.created_at == taste.last_computed_at)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def list_snapshots(self, taste_id_id: uuid.UUID, limit: int) -> list[TasteIDSnapshot]:
        result = await self.session.execute(
            select(TasteIDSnapshot)
            .where(TasteIDSnapshot.taste_id_id == taste_id_id)
            .order_by(TasteIDSnapshot.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_taste_match(self, user1_id: str, user2_id: str) -> TasteMatch | None:
        result = await self.session.execute(
            select(TasteMatch).where(TasteMatch.user1_id == user1_id, TasteMatch.user2_id == user2_id)
        )
        return result.scalar_one_or_none()

    async def upsert_taste_match(self, user1_id: str, user2_id: str, values: dict[str, Any]) -> TasteMatch:
        row = {**values, "user1_id": user1_id, "user2_id": user2_id}
        row.setdefault("id", uuid.uuid4())
        row.setdefault("created_at", utcnow())
        stmt = self._insert(TasteMatch).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TasteMatch.user1_id, TasteMatch.user2_id],
            set_={key: stmt.excluded[key] for key in row if key not in TASTE_MATCH_KEY_COLUMNS},
        )
        await self.session.execute(stmt)
        result = await self.session.execute(
            select(TasteMatch)
            .where(TasteMatch.user1_id == user1_id, TasteMatch.user2_id == user2_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def _to_records(reviews: Sequence[Review]) -> list[ReviewRecord]:
    """Convert loaded ORM reviews (with albums) into aggregator records."""
    return [
        ReviewRecord(
            user_id=review.user_id,
            album_id=review.album_id,
            rating=review.rating,
            created_at=review.created_at,
            artist_name=review.album.artist_name,
            genres=review.album.genres if review.album.genres is not None else (),
            release_date=review.album.release_date,
            album_title=review.album.title,
            text=review.text,
            quick_rate=bool(review.quick_rate),
        )
        for review in reviews
    ]
