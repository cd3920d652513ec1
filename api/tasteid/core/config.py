"""Application settings parsed from environment variables and defaults."""

import json
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "TasteID API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+aiosqlite:///./tasteid.db"
    test_database_url: Optional[str] = None

    log_level: str = "INFO"
    cors_origins: list[str] | str = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.copy())

    # Review aggregation
    min_reviews: int = 3
    quick_rate_scale: int = 5
    rating_scale: int = 10

    # Score calculators
    harsh_rating_threshold: float = 5.0
    lenient_rating_threshold: float = 7.5
    terse_review_words: int = 15
    elaborate_review_words: int = 60
    platform_mean_rating: float = 6.5
    platform_rating_stddev: float = 2.0
    polarity_cap: float = 3.0
    adventureness_reference_genres: int = 8

    # Assembler
    top_genres_limit: int = 5
    top_artists_limit: int = 10
    artist_dna_limit: int = 20
    signature_album_limit: int = 5
    signature_album_min_text: int = 50
    loved_album_limit: int = 50
    loved_album_min_rating: float = 8.0

    # Archetype classifier
    archetype_secondary_margin: float = 0.15
    era_focus_floor: float = 0.6

    # Compatibility engine
    match_weight_genre: float = 0.40
    match_weight_artist: float = 0.30
    match_weight_rating: float = 0.20
    match_weight_albums: float = 0.10
    shared_album_target: int = 10
    rating_alignment_span: float = 5.0
    taste_twin_thresholds: list[float] | str = Field(default_factory=lambda: [0.8, 0.5, 0.8])
    explorer_genre_min: float = 0.5
    explorer_adventureness_gap: float = 0.4
    complementary_genre_max: float = 0.3
    complementary_artist_max: float = 0.2
    match_staleness_hours: int = 24

    # Similarity search
    similar_users_default_limit: int = 10
    similar_users_max_limit: int = 50

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize CORS origins from JSON, CSV, or list inputs."""
        if isinstance(value, list):
            cleaned = [origin.strip() for origin in value if isinstance(origin, str) and origin.strip()]
            return cleaned or DEFAULT_CORS_ORIGINS.copy()
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return DEFAULT_CORS_ORIGINS.copy()
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                cleaned = [str(origin).strip() for origin in parsed if str(origin).strip()]
                if cleaned:
                    return cleaned
            origins = [origin.strip() for origin in stripped.split(",") if origin.strip()]
            if origins:
                return origins
        return DEFAULT_CORS_ORIGINS.copy()

    @field_validator("taste_twin_thresholds", mode="before")
    @classmethod
    def _split_taste_twin_thresholds(cls, value: str | list[float] | None) -> list[float]:
        """Normalize genre/artist/rating minimums from JSON, CSV, or list inputs."""
        if value is None:
            return [0.8, 0.5, 0.8]
        if isinstance(value, str):
            stripped = value.strip()
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                parsed = [item for item in stripped.split(",") if item.strip()]
            value = parsed if isinstance(parsed, list) else [parsed]
        thresholds = [float(item) for item in value]
        if len(thresholds) != 3:
            raise ValueError("TASTE_TWIN_THRESHOLDS needs genre, artist and rating minimums")
        return thresholds

    @model_validator(mode="after")
    def _validate_thresholds(self) -> "Settings":
        """Reject threshold combinations that would make classification ambiguous."""
        if self.harsh_rating_threshold >= self.lenient_rating_threshold:
            raise ValueError("HARSH_RATING_THRESHOLD must be below LENIENT_RATING_THRESHOLD")
        if self.terse_review_words >= self.elaborate_review_words:
            raise ValueError("TERSE_REVIEW_WORDS must be below ELABORATE_REVIEW_WORDS")
        if self.min_reviews < 1:
            raise ValueError("MIN_REVIEWS must be positive")
        if self.platform_rating_stddev <= 0:
            raise ValueError("PLATFORM_RATING_STDDEV must be positive")
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()
