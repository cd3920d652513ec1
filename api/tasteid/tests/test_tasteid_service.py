"""TasteID assembly and persistence through the SQL store."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from tasteid.core.config import settings
from tasteid.core.errors import ComputationFailure, InsufficientData, NotFound
from tasteid.models.catalog import Album, Review
from tasteid.models.taste import RatingSkew, ReviewDepth, TasteID, TasteIDSnapshot
from tasteid.services import tasteid_service
from tasteid.services.taste_store import SqlTasteStore
from tasteid.tests.utils import BASE_TIME, DECADE_DATES, ReviewSpec, add_reviews, jazz_and_rock_specs

LONG_TEXT = "A patient record that rewards close listening and keeps revealing new layers."


@pytest.mark.asyncio
async def test_three_reviews_compute_but_two_do_not(session):
    store = SqlTasteStore(session)
    await add_reviews(session, "three", [ReviewSpec(f"t-{index}", 7.0) for index in range(3)])
    await add_reviews(session, "two", [ReviewSpec(f"w-{index}", 7.0) for index in range(2)])

    taste = await tasteid_service.compute_taste_id(store, "three")
    assert taste.review_count == 3

    with pytest.raises(InsufficientData) as excinfo:
        await tasteid_service.compute_taste_id(store, "two")
    assert excinfo.value.review_count == 2
    assert await store.get_taste_id("two") is None


@pytest.mark.asyncio
async def test_mostly_jazz_listener_fingerprint(session):
    store = SqlTasteStore(session)
    await add_reviews(session, "jazz-fan", jazz_and_rock_specs())

    taste = await tasteid_service.compute_taste_id(store, "jazz-fan")

    assert taste.primary_archetype == "jazz-explorer"
    assert taste.secondary_archetype is None
    assert 0.0 < taste.archetype_confidence < 1.0
    assert taste.top_genres == ["jazz", "rock"]
    assert taste.genre_vector == pytest.approx({"jazz": 0.7, "rock": 0.3})
    assert sum(taste.genre_vector.values()) == pytest.approx(1.0)
    assert taste.decade_preferences == pytest.approx(
        {"1950s": 0.2, "1960s": 0.2, "1970s": 0.2, "1980s": 0.2, "1990s": 0.2}
    )
    assert taste.rating_skew is RatingSkew.BALANCED
    assert taste.review_depth is ReviewDepth.TERSE
    assert taste.average_rating == pytest.approx(6.5)
    assert taste.polarity_score == 0.0
    assert taste.top_artists[0] == "Rock Artist 2"
    assert len(taste.top_artists) == 10
    assert taste.artist_dna[0]["weight"] == pytest.approx(1.0)
    assert taste.dominant_network == "frontoparietal"
    assert taste.music_mode == "discovery"
    assert sum(taste.network_activations.values()) == pytest.approx(100.0, abs=1e-3)


@pytest.mark.asyncio
async def test_jazz_lover_with_low_rock_ratings(session):
    store = SqlTasteStore(session)
    ratings = [("Jazz", 8.0), ("Jazz", 9.0), ("Jazz", 7.0), ("Rock", 3.0), ("Rock", 4.0)]
    await add_reviews(
        session,
        "five",
        [
            ReviewSpec(f"five-{index}", rating, artist_name=f"Artist {index}", genres=(genre,), release_date=released)
            for index, ((genre, rating), released) in enumerate(zip(ratings, DECADE_DATES))
        ],
    )

    taste = await tasteid_service.compute_taste_id(store, "five")

    assert taste.genre_vector == pytest.approx({"jazz": 0.6, "rock": 0.4})
    assert taste.average_rating == pytest.approx(6.2)
    assert taste.average_rating < settings.platform_mean_rating
    assert taste.rating_skew is RatingSkew.BALANCED
    assert taste.primary_archetype == "jazz-explorer"
    assert taste.secondary_archetype is None
    assert 0.3 < taste.archetype_confidence < 0.7
    assert 0.0 <= taste.adventureness_score <= 1.0


@pytest.mark.asyncio
async def test_signature_albums_loved_albums_and_patterns(session):
    store = SqlTasteStore(session)
    await add_reviews(
        session,
        "critic",
        [
            ReviewSpec("sig-1", 9.5, artist_name="Alpha", text=LONG_TEXT),
            ReviewSpec("sig-2", 8.0, artist_name="Alpha", text=LONG_TEXT),
            ReviewSpec("short", 10.0, artist_name="Alpha", text="Perfect."),
            ReviewSpec("meh", 3.0, artist_name="Beta"),
        ],
    )

    taste = await tasteid_service.compute_taste_id(store, "critic")

    assert taste.signature_albums == ["sig-1", "sig-2"]
    assert taste.loved_albums == ["short", "sig-2", "sig-1"]
    assert taste.rating_skew is RatingSkew.LENIENT
    assert taste.signature_patterns == [
        tasteid_service.MUSIC_OPTIMIST,
        tasteid_service.DISCOGRAPHY_COMPLETIONIST,
        tasteid_service.EMOTIONAL_LISTENER,
    ]
    assert taste.artist_dna[0]["artist_name"] == "Alpha"
    assert taste.artist_dna[0]["review_count"] == 3
    assert taste.artist_dna[1]["weight"] == pytest.approx(1 / 3, rel=1e-5)


@pytest.mark.asyncio
async def test_recompute_is_idempotent_and_appends_history(session):
    store = SqlTasteStore(session)
    await add_reviews(session, "steady", jazz_and_rock_specs())
    first_at = datetime(2024, 6, 1, 12, 0)
    second_at = first_at + timedelta(hours=1)

    first = await tasteid_service.compute_taste_id(store, "steady", now=first_at)
    first_values = (dict(first.genre_vector), first.primary_archetype, first.archetype_confidence, first.id)
    second = await tasteid_service.compute_taste_id(store, "steady", now=second_at)

    assert (second.genre_vector, second.primary_archetype, second.archetype_confidence, second.id) == first_values
    assert second.last_computed_at == second_at

    count = await session.scalar(select(func.count()).select_from(TasteID).where(TasteID.user_id == "steady"))
    assert count == 1

    history = await tasteid_service.get_taste_history(store, "steady")
    assert [snapshot.created_at for snapshot in history] == [second_at, first_at]
    assert history[0].payload["rating_skew"] == "balanced"
    assert history[0].payload["last_computed_at"] == second_at.isoformat()
    assert history[0].payload["genre_vector"] == pytest.approx({"jazz": 0.7, "rock": 0.3})


@pytest.mark.asyncio
async def test_recompute_at_the_same_instant_replaces_that_snapshot(session):
    store = SqlTasteStore(session)
    await add_reviews(session, "repeat", [ReviewSpec(f"r-{index}", 6.0) for index in range(3)])
    computed_at = datetime(2024, 6, 1)

    first = await tasteid_service.compute_taste_id(store, "repeat", now=computed_at)
    await add_reviews(session, "repeat", [ReviewSpec("r-new", 9.0, genres=("Jazz",))])
    second = await tasteid_service.compute_taste_id(store, "repeat", now=computed_at)

    assert second.id == first.id
    assert second.review_count == 4
    history = await tasteid_service.get_taste_history(store, "repeat")
    assert [snapshot.created_at for snapshot in history] == [computed_at]
    assert history[0].review_count == 4
    assert "jazz" in history[0].payload["genre_vector"]

@pytest.mark.asyncio
async def test_recompute_picks_up_new_reviews(session):
    store = SqlTasteStore(session)
    await add_reviews(session, "growing", [ReviewSpec(f"g-{index}", 6.0) for index in range(3)])
    before = await tasteid_service.compute_taste_id(store, "growing", now=datetime(2024, 6, 1))

    await add_reviews(session, "growing", [ReviewSpec("g-new", 9.0, genres=("Jazz",))])
    after = await tasteid_service.compute_taste_id(store, "growing", now=datetime(2024, 6, 2))

    assert after.id == before.id
    assert after.review_count == 4
    assert "jazz" in after.genre_vector


@pytest.mark.asyncio
async def test_malformed_album_fails_without_persisting(session):
    store = SqlTasteStore(session)
    await add_reviews(
        session,
        "broken",
        [
            ReviewSpec("b-1", 7.0),
            ReviewSpec("b-2", 7.0, artist_name="   "),
            ReviewSpec("b-3", 7.0),
        ],
    )

    with pytest.raises(ComputationFailure):
        await tasteid_service.compute_taste_id(store, "broken")
    assert await store.get_taste_id("broken") is None
    snapshots = await session.scalar(select(func.count()).select_from(TasteIDSnapshot))
    assert snapshots == 0


@pytest.mark.asyncio
async def test_genre_string_instead_of_list_fails_without_persisting(session):
    store = SqlTasteStore(session)
    for index in range(3):
        session.add(Album(id=f"s-{index}", title=f"Stringy {index}", artist_name="Test Artist", genres="rock"))
        session.add(Review(user_id="stringy", album_id=f"s-{index}", rating=7.0, created_at=BASE_TIME))
    await session.commit()

    with pytest.raises(ComputationFailure):
        await tasteid_service.compute_taste_id(store, "stringy")
    assert await store.get_taste_id("stringy") is None
    snapshots = await session.scalar(select(func.count()).select_from(TasteIDSnapshot))
    assert snapshots == 0

@pytest.mark.asyncio
async def test_unknown_user_is_not_found(session):
    store = SqlTasteStore(session)
    with pytest.raises(NotFound) as excinfo:
        await tasteid_service.get_taste_id(store, "ghost")
    assert excinfo.value.user_ids == ("ghost",)
    with pytest.raises(NotFound):
        await tasteid_service.get_taste_history(store, "ghost")
