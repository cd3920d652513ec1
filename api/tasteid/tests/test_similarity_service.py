"""Nearest-taste search over stored TasteIDs."""

from __future__ import annotations

import pytest

from tasteid.core.errors import NotFound
from tasteid.services import similarity_service, tasteid_service
from tasteid.services.taste_store import SqlTasteStore
from tasteid.tests.utils import ReviewSpec, add_reviews


def _listener(prefix: str, genres: tuple[str, ...]) -> list[ReviewSpec]:
    return [
        ReviewSpec(f"{prefix}-{index}", 7.0, artist_name=f"{prefix} artist {index}", genres=genres)
        for index in range(3)
    ]


async def _seed(session, store: SqlTasteStore) -> None:
    listeners = {
        "query": ("Jazz", "Soul"),
        "twin-b": ("Jazz", "Soul"),
        "twin-a": ("Jazz", "Soul"),
        "near": ("Jazz",),
        "far": ("Metal",),
    }
    for user_id, genres in listeners.items():
        await add_reviews(session, user_id, _listener(user_id, genres))
        await tasteid_service.compute_taste_id(store, user_id)


@pytest.mark.asyncio
async def test_similar_users_are_ranked_and_exclude_self(session):
    store = SqlTasteStore(session)
    await _seed(session, store)

    results = await similarity_service.find_similar(store, "query", limit=10)

    assert [taster.user_id for taster in results] == ["twin-a", "twin-b", "near", "far"]
    assert results[0].score == pytest.approx(100.0)
    assert results[2].score == pytest.approx(70.71, abs=0.01)
    assert results[3].score == 0.0
    assert results[2].shared_genres == ["jazz"]
    twin = await store.get_taste_id("twin-a")
    assert results[0].archetype == twin.primary_archetype


@pytest.mark.asyncio
async def test_similar_users_respects_limit(session):
    store = SqlTasteStore(session)
    await _seed(session, store)

    results = await similarity_service.find_similar(store, "query", limit=2)

    assert [taster.user_id for taster in results] == ["twin-a", "twin-b"]


def test_limit_is_clamped():
    assert similarity_service.clamp_limit(None) == 10
    assert similarity_service.clamp_limit(500) == 50


@pytest.mark.asyncio
async def test_zero_or_negative_limit_returns_no_one(session):
    store = SqlTasteStore(session)
    await _seed(session, store)

    assert await similarity_service.find_similar(store, "query", limit=0) == []
    assert await similarity_service.find_similar(store, "query", limit=-3) == []


@pytest.mark.asyncio
async def test_similar_requires_a_taste_id(session):
    store = SqlTasteStore(session)
    with pytest.raises(NotFound):
        await similarity_service.find_similar(store, "ghost")
