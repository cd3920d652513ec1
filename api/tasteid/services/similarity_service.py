"""Nearest-taste search over every other user's TasteID."""

from __future__ import annotations

from dataclasses import dataclass, field

from tasteid.core.config import settings
from tasteid.services.taste_scoring import cosine_similarity
from tasteid.services.taste_store import TasteStore
from tasteid.services.tasteid_service import get_taste_id


@dataclass(frozen=True, slots=True)
class SimilarTaster:
    user_id: str
    score: float
    archetype: str
    shared_genres: list[str] = field(default_factory=list)


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.similar_users_default_limit
    return min(int(limit), settings.similar_users_max_limit)


async def find_similar(store: TasteStore, user_id: str, limit: int | None = None) -> list[SimilarTaster]:
    """Rank other users by genre-vector similarity, highest first, ties by user id."""
    query = await get_taste_id(store, user_id)
    limit = clamp_limit(limit)
    if limit <= 0:
        return []

    scored: list[SimilarTaster] = []
    for candidate in await store.list_taste_ids(exclude_user_id=user_id):
        if candidate.user_id == user_id:
            continue
        candidate_genres = set(candidate.top_genres or [])
        similarity = cosine_similarity(query.genre_vector or {}, candidate.genre_vector or {})
        scored.append(
            SimilarTaster(
                user_id=candidate.user_id,
                score=round(similarity * 100.0, 2),
                archetype=candidate.primary_archetype,
                shared_genres=[genre for genre in query.top_genres or [] if genre in candidate_genres],
            )
        )
    scored.sort(key=lambda taster: (-taster.score, taster.user_id))
    return scored[:limit]
