"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings

from adr_sentinel.constants import (
    BATCH_DELAY_SECONDS,
    DEFAULT_MAX_RESULTS,
    DEFAULT_MIN_SCORE,
    DUPLICATE_CANDIDATE_LIMIT,
    DUPLICATE_SIMILARITY_THRESHOLD,
    DUPLICATE_TIME_WINDOW_HOURS,
    INDEX_MAX_CANDIDATES,
    INDEX_TTL_SECONDS,
    PRESUBMISSION_CANDIDATE_LIMIT,
    SUGGESTION_LIMIT,
)
from adr_sentinel.models.model_duplicates import DuplicateConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str | None = None

    # Search index
    index_ttl_seconds: float = INDEX_TTL_SECONDS
    index_max_candidates: int = INDEX_MAX_CANDIDATES

    # Medicine matching
    match_max_results: int = DEFAULT_MAX_RESULTS
    match_min_score: float = DEFAULT_MIN_SCORE
    suggestion_limit: int = SUGGESTION_LIMIT

    # Duplicate detection
    duplicate_time_window_hours: float = DUPLICATE_TIME_WINDOW_HOURS
    duplicate_similarity_threshold: float = DUPLICATE_SIMILARITY_THRESHOLD
    duplicate_candidate_limit: int = DUPLICATE_CANDIDATE_LIMIT
    presubmission_candidate_limit: int = PRESUBMISSION_CANDIDATE_LIMIT
    batch_delay_seconds: float = BATCH_DELAY_SECONDS
    candidate_fetch_timeout_seconds: float | None = None

    # App Settings
    log_level: str = "INFO"

    class Config:
        env_prefix = "ADR_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True

    def duplicate_config(self) -> DuplicateConfig:
        """Build the duplicate-detection config from these settings."""
        return DuplicateConfig(
            time_window_hours=self.duplicate_time_window_hours,
            similarity_threshold=self.duplicate_similarity_threshold,
            candidate_limit=self.duplicate_candidate_limit,
            presubmission_candidate_limit=self.presubmission_candidate_limit,
            batch_delay_seconds=self.batch_delay_seconds,
            fetch_timeout_seconds=self.candidate_fetch_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
