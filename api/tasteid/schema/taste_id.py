"""TasteID, match, and search schemas for response payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from tasteid.models.taste import MatchType, RatingSkew, ReviewDepth
from tasteid.schema.base import ORMModel
from tasteid.services.compatibility_service import MATCH_TYPE_DESCRIPTIONS


class ArtistDNAEntry(BaseModel):
    """Per-artist weight and rating summary inside a TasteID."""
    artist_name: str
    weight: float
    avg_rating: float
    review_count: int


class TasteIDRead(ORMModel):
    """Computed taste fingerprint for a user."""
    id: UUID
    user_id: str
    primary_archetype: str
    secondary_archetype: str | None = None
    archetype_confidence: float
    genre_vector: dict[str, float] = Field(default_factory=dict)
    decade_preferences: dict[str, float] = Field(default_factory=dict)
    top_genres: list[str] = Field(default_factory=list)
    top_artists: list[str] = Field(default_factory=list)
    artist_dna: list[ArtistDNAEntry] = Field(default_factory=list)
    signature_albums: list[str] = Field(default_factory=list)
    signature_patterns: list[str] = Field(default_factory=list)
    adventureness_score: float
    polarity_score: float
    rating_skew: RatingSkew
    review_depth: ReviewDepth
    average_rating: float
    rating_std_dev: float
    avg_review_length: float
    review_count: int
    network_activations: dict[str, float] = Field(default_factory=dict)
    dominant_network: str
    music_mode: str
    last_computed_at: datetime
    created_at: datetime


class TasteIDSnapshotRead(ORMModel):
    """Point-in-time summary from a user's TasteID history."""
    id: UUID
    primary_archetype: str
    adventureness_score: float
    review_count: int
    payload: dict = Field(default_factory=dict)
    created_at: datetime


class TasteMatchRead(ORMModel):
    """Compatibility result for a canonical user pair."""
    user1_id: str
    user2_id: str
    overall_score: float
    genre_overlap: float
    artist_overlap: float
    rating_alignment: float
    shared_genres: list[str] = Field(default_factory=list)
    shared_artists: list[str] = Field(default_factory=list)
    shared_albums: list[str] = Field(default_factory=list)
    match_type: MatchType
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def match_description(self) -> str:
        return MATCH_TYPE_DESCRIPTIONS[self.match_type]


class SimilarTasterRead(ORMModel):
    """One ranked neighbor from a similarity search."""
    user_id: str
    score: float
    archetype: str
    shared_genres: list[str] = Field(default_factory=list)


class ArchetypeInfo(BaseModel):
    """Display metadata for an archetype."""
    id: str
    name: str
    description: str
    icon: str
    behavioral: bool = False
    family: str | None = None
