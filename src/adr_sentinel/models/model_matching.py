"""Pydantic models for medicine matching results."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from adr_sentinel.constants import DEFAULT_MAX_RESULTS, DEFAULT_MIN_SCORE
from adr_sentinel.models.model_medicine import MedicineRecord

PREFIX = "prefix_"


class MatchType(str, Enum):
    """Why a candidate matched a query."""

    EXACT_NAME = "exact_name"
    EXACT_GENERIC = "exact_generic"
    CONTAINS_NAME = "contains_name"
    CONTAINS_GENERIC = "contains_generic"
    HIGH_SIMILARITY_NAME = "high_similarity_name"
    HIGH_SIMILARITY_GENERIC = "high_similarity_generic"
    FUZZY = "fuzzy"
    PREFIX_CONTAINS_NAME = "prefix_contains_name"
    PREFIX_CONTAINS_GENERIC = "prefix_contains_generic"
    PREFIX_HIGH_SIMILARITY_NAME = "prefix_high_similarity_name"
    PREFIX_HIGH_SIMILARITY_GENERIC = "prefix_high_similarity_generic"
    PREFIX_FUZZY = "prefix_fuzzy"

    @property
    def is_exact(self) -> bool:
        return self in (MatchType.EXACT_NAME, MatchType.EXACT_GENERIC)

    @property
    def is_prefixed(self) -> bool:
        return self.value.startswith(PREFIX)

    def with_prefix(self) -> "MatchType":
        """Return the prefix_ variant; exact and already-prefixed types are unchanged."""
        if self.is_exact or self.is_prefixed:
            return self
        return MatchType(PREFIX + self.value)


class MatchOptions(BaseModel):
    """Options recognised by MedicineMatcher.match."""

    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)
    min_score: float = Field(default=DEFAULT_MIN_SCORE, ge=0.0, le=1.0)
    include_exact: bool = True


class SimilarityScore(BaseModel):
    """A ranked medicine candidate for one query. Not persisted."""

    candidate_id: str
    candidate_name: str
    generic_name: str | None = None
    medicine: MedicineRecord
    per_metric_scores: dict[str, float] = {}
    combined_score: float = Field(ge=0.0, le=1.0)
    match_type: MatchType
    highlighted_match: str = ""


class Suggestion(BaseModel):
    """Simplified autocomplete entry returned by get_suggestions."""

    id: str
    name: str
    generic_name: str | None = None
    score: float
    match_type: MatchType
    highlighted_name: str = ""

    @classmethod
    def from_score(cls, result: SimilarityScore) -> "Suggestion":
        return cls(
            id=result.candidate_id,
            name=result.candidate_name,
            generic_name=result.generic_name,
            score=result.combined_score,
            match_type=result.match_type,
            highlighted_name=result.highlighted_match,
        )


class IndexStats(BaseModel):
    """Operational view of the search index."""

    index_size: int = 0
    version: int = 0
    built_at: datetime | None = None
    ttl_seconds: float
    status: Literal["empty", "fresh", "stale"] = "empty"
    rebuild_in_progress: bool = False
