"""Caller-facing entry point tying the index, matcher and detector together."""

from adr_sentinel.config import Settings, get_settings
from adr_sentinel.data_sources.record_store import RecordStore
from adr_sentinel.models.model_duplicates import (
    BatchDuplicateAnalysis,
    DuplicateAnalysis,
    DuplicateAssessment,
    DuplicateCheckResult,
)
from adr_sentinel.models.model_matching import (
    IndexStats,
    MatchOptions,
    SimilarityScore,
    Suggestion,
)
from adr_sentinel.models.model_medicine import MedicineRecord
from adr_sentinel.models.model_report import ReportSummary
from adr_sentinel.services.duplicate_detector import DuplicateDetector
from adr_sentinel.services.medicine_matcher import MedicineMatcher
from adr_sentinel.services.search_index import SearchIndex


class MatchingService:
    """Medicine search and duplicate detection over one record store.

    Build it once per process (see from_settings) and share it; the search
    index it owns is refreshed in place.
    """

    def __init__(
        self,
        index: SearchIndex,
        matcher: MedicineMatcher,
        detector: DuplicateDetector,
        default_options: MatchOptions | None = None,
        suggestion_limit: int = 5,
    ) -> None:
        self.index = index
        self.matcher = matcher
        self.detector = detector
        self.default_options = default_options or MatchOptions()
        self.suggestion_limit = suggestion_limit

    @classmethod
    def from_settings(
        cls, store: RecordStore, settings: Settings | None = None
    ) -> "MatchingService":
        settings = settings or get_settings()
        index = SearchIndex(
            store,
            ttl_seconds=settings.index_ttl_seconds,
            max_candidates=settings.index_max_candidates,
        )
        return cls(
            index=index,
            matcher=MedicineMatcher(index),
            detector=DuplicateDetector(store, settings.duplicate_config()),
            default_options=MatchOptions(
                max_results=settings.match_max_results,
                min_score=settings.match_min_score,
            ),
            suggestion_limit=settings.suggestion_limit,
        )

    # -- Medicine search ------------------------------------------------------

    async def search_medicines(
        self, query: str, options: MatchOptions | None = None
    ) -> list[SimilarityScore]:
        return await self.matcher.match(query, options or self.default_options)

    async def get_suggestions(
        self, partial_name: str, limit: int | None = None
    ) -> list[Suggestion]:
        return await self.matcher.suggest(partial_name, limit or self.suggestion_limit)

    async def find_exact_matches(self, query: str) -> list[MedicineRecord]:
        return await self.matcher.find_exact_matches(query)

    async def search_by_category(
        self, category: str, query: str = "", limit: int = 10
    ) -> list[MedicineRecord]:
        return await self.matcher.search_by_category(category, query, limit)

    async def force_refresh_index(self) -> None:
        await self.index.force_refresh()

    def index_stats(self) -> IndexStats:
        return self.index.stats()

    # -- Duplicate detection --------------------------------------------------

    async def find_duplicates_for_report(self, report_id: str) -> list[DuplicateAssessment]:
        return await self.detector.find_duplicates_for_report(report_id)

    async def analyze_report(self, report_id: str) -> DuplicateAnalysis:
        return await self.detector.analyze_report(report_id)

    async def check_duplicates_before_submission(
        self, draft: ReportSummary
    ) -> DuplicateCheckResult:
        return await self.detector.check_before_submission(draft)

    async def analyze_batch(
        self, report_ids: list[str], delay_seconds: float | None = None
    ) -> BatchDuplicateAnalysis:
        return await self.detector.analyze_batch(report_ids, delay_seconds)

    async def close(self) -> None:
        await self.index.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()
