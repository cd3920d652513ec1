"""Persisted taste fingerprints, their history, and pairwise matches."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasteid.db.base_class import Base
from tasteid.utils.datetime import utcnow

JSON_COMPATIBLE = JSON().with_variant(JSONB, "postgresql")


class RatingSkew(str, enum.Enum):
    """How a user's mean rating sits against the configured thresholds."""
    HARSH = "harsh"
    BALANCED = "balanced"
    LENIENT = "lenient"


class ReviewDepth(str, enum.Enum):
    """Mean written-review length band."""
    TERSE = "terse"
    MODERATE = "moderate"
    ELABORATE = "elaborate"


class MatchType(str, enum.Enum):
    """Classification label for a pairwise compatibility result."""
    TASTE_TWIN = "taste_twin"
    EXPLORER_GUIDE = "explorer_guide"
    GENRE_BUDDY = "genre_buddy"
    COMPLEMENTARY = "complementary"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class TasteID(Base):
    """Computed taste fingerprint, one row per user."""
    __tablename__ = "taste_ids"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_taste_id_user"),
        CheckConstraint("review_count >= 0", name="review_count_nonnegative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    primary_archetype: Mapped[str] = mapped_column(String(64), nullable=False)
    secondary_archetype: Mapped[str | None] = mapped_column(String(64))
    archetype_confidence: Mapped[float] = mapped_column(default=0.0)

    genre_vector: Mapped[dict] = mapped_column(JSON_COMPATIBLE, default=dict)
    decade_preferences: Mapped[dict] = mapped_column(JSON_COMPATIBLE, default=dict)
    top_genres: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    top_artists: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    artist_dna: Mapped[list[dict]] = mapped_column(JSON_COMPATIBLE, default=list)
    signature_albums: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    loved_albums: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    signature_patterns: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)

    adventureness_score: Mapped[float] = mapped_column(default=0.0)
    polarity_score: Mapped[float] = mapped_column(default=0.0)
    rating_skew: Mapped[RatingSkew] = mapped_column(
        Enum(RatingSkew, name="rating_skew", values_callable=_enum_values),
        nullable=False,
    )
    review_depth: Mapped[ReviewDepth] = mapped_column(
        Enum(ReviewDepth, name="review_depth", values_callable=_enum_values),
        nullable=False,
    )
    average_rating: Mapped[float] = mapped_column(default=0.0)
    rating_std_dev: Mapped[float] = mapped_column(default=0.0)
    avg_review_length: Mapped[float] = mapped_column(default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)

    network_activations: Mapped[dict] = mapped_column(JSON_COMPATIBLE, default=dict)
    dominant_network: Mapped[str] = mapped_column(String(32), nullable=False)
    music_mode: Mapped[str] = mapped_column(String(32), nullable=False)

    last_computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    snapshots: Mapped[list["TasteIDSnapshot"]] = relationship(
        back_populates="taste_id", cascade="all, delete-orphan", order_by="TasteIDSnapshot.created_at"
    )


class TasteIDSnapshot(Base):
    """Immutable copy of a TasteID taken at every write, for trend history."""
    __tablename__ = "taste_id_snapshots"
    __table_args__ = (UniqueConstraint("taste_id_id", "created_at", name="uq_taste_id_snapshot_time"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    taste_id_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("taste_ids.id", ondelete="CASCADE"), nullable=False, index=True
    )
    primary_archetype: Mapped[str] = mapped_column(String(64), nullable=False)
    adventureness_score: Mapped[float] = mapped_column(default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    payload: Mapped[dict] = mapped_column(JSON_COMPATIBLE, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    taste_id: Mapped[TasteID] = relationship(back_populates="snapshots")


class TasteMatch(Base):
    """Cached compatibility between two users, stored once per sorted pair."""
    __tablename__ = "taste_matches"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_taste_match_pair"),
        CheckConstraint("user1_id < user2_id", name="canonical_pair_order"),
        CheckConstraint("overall_score >= 0 AND overall_score <= 100", name="overall_score_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user1_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user2_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    overall_score: Mapped[float] = mapped_column(default=0.0)
    genre_overlap: Mapped[float] = mapped_column(default=0.0)
    artist_overlap: Mapped[float] = mapped_column(default=0.0)
    rating_alignment: Mapped[float] = mapped_column(default=0.0)
    shared_genres: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    shared_artists: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    shared_albums: Mapped[list[str]] = mapped_column(JSON_COMPATIBLE, default=list)
    match_type: Mapped[MatchType] = mapped_column(
        Enum(MatchType, name="match_type", values_callable=_enum_values),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
