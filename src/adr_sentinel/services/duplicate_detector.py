"""
Duplicate candidate generator.

Fetches a bounded, time-windowed set of reports that share the medicine or
the patient with the input report, scores each with DuplicateScorer and
returns the potential duplicates ranked by score.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from adr_sentinel.data_sources.record_store import RecordStore
from adr_sentinel.exceptions import (
    CandidateFetchTimeout,
    RecordStoreUnavailable,
    ReportNotFound,
)
from adr_sentinel.models.model_duplicates import (
    BatchDuplicateAnalysis,
    BatchItemError,
    DuplicateAnalysis,
    DuplicateAssessment,
    DuplicateCheckResult,
    DuplicateConfig,
)
from adr_sentinel.models.model_report import ReportSummary
from adr_sentinel.services.duplicate_scorer import DuplicateScorer

logger = logging.getLogger(__name__)


def rank_key(assessment: DuplicateAssessment) -> tuple[float, int, datetime, str]:
    """Sort key: higher score, then identical report, then earlier incident."""
    return (
        -assessment.score,
        0 if assessment.score >= 1.0 else 1,
        assessment.incident_date or datetime.max,
        assessment.candidate_report_id or "",
    )


class DuplicateDetector:
    """Finds likely re-submissions of adverse-event reports."""

    def __init__(
        self,
        store: RecordStore,
        config: DuplicateConfig | None = None,
        scorer: DuplicateScorer | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.config = config or DuplicateConfig()
        self._scorer = scorer or DuplicateScorer(self.config)
        self._clock = clock

    # -- Candidate fetch ------------------------------------------------------

    async def _fetch_candidates(
        self,
        report: ReportSummary,
        limit: int,
        timeout: float | None,
    ) -> list[ReportSummary]:
        if report.medicine_id is None and report.patient_id is None:
            logger.debug("Report %s has no medicine or patient reference", report.report_id)
            return []

        since = self._clock() - timedelta(hours=self.config.time_window_hours)
        deadline = timeout if timeout is not None else self.config.fetch_timeout_seconds
        fetch = self._store.find_reports_by_window(
            report.medicine_id,
            report.patient_id,
            since,
            exclude_report_id=report.report_id,
            limit=limit,
        )
        try:
            candidates = await asyncio.wait_for(fetch, timeout=deadline)
        except RecordStoreUnavailable:
            raise
        except TimeoutError as e:
            if deadline is None:
                raise self._unavailable("find_reports_by_window", e) from e
            raise CandidateFetchTimeout(
                self._store._source_name,
                f"Candidate fetch exceeded {deadline}s",
            ) from e
        except Exception as e:
            raise self._unavailable("find_reports_by_window", e) from e

        # drafts have no id, so nothing to exclude for them
        if report.report_id is not None:
            candidates = [c for c in candidates if c.report_id != report.report_id]
        return candidates

    def _unavailable(self, method: str, error: Exception) -> RecordStoreUnavailable:
        logger.error(
            "Record store call failed [%s.%s]: %s", self._store._source_name, method, error
        )
        return RecordStoreUnavailable(self._store._source_name, f"{method} failed: {error!r}")

    async def _get_report(self, report_id: str) -> ReportSummary:
        try:
            report = await self._store.get_report(report_id)
        except RecordStoreUnavailable:
            raise
        except Exception as e:
            raise self._unavailable("get_report", e) from e
        if report is None:
            raise ReportNotFound(report_id)
        return report

    def _score_candidates(
        self, report: ReportSummary, candidates: list[ReportSummary]
    ) -> list[DuplicateAssessment]:
        assessments = [self._scorer.score(report, candidate) for candidate in candidates]
        duplicates = [a for a in assessments if a.is_potential_duplicate]
        duplicates.sort(key=rank_key)
        return duplicates

    # -- Public methods -------------------------------------------------------

    async def find_duplicates(
        self, report: ReportSummary, timeout: float | None = None
    ) -> list[DuplicateAssessment]:
        """Potential duplicates of a persisted report, best first."""
        candidates = await self._fetch_candidates(
            report, self.config.candidate_limit, timeout
        )
        return self._score_candidates(report, candidates)

    async def analyze_report(
        self, report_id: str, timeout: float | None = None
    ) -> DuplicateAnalysis:
        """Load a report by id and return its full duplicate analysis."""
        report = await self._get_report(report_id)

        candidates = await self._fetch_candidates(
            report, self.config.candidate_limit, timeout
        )
        duplicates = self._score_candidates(report, candidates)
        logger.info(
            "Report %s: %d candidates checked, %d potential duplicates",
            report_id,
            len(candidates),
            len(duplicates),
        )
        return DuplicateAnalysis(
            report_id=report_id,
            analysis_date=self._clock(),
            total_candidates_checked=len(candidates),
            potential_duplicates_found=len(duplicates),
            duplicates=duplicates,
            time_window_hours=self.config.time_window_hours,
            similarity_threshold=self.config.similarity_threshold,
        )

    async def find_duplicates_for_report(
        self, report_id: str, timeout: float | None = None
    ) -> list[DuplicateAssessment]:
        analysis = await self.analyze_report(report_id, timeout=timeout)
        return analysis.duplicates

    async def check_before_submission(
        self, draft: ReportSummary, timeout: float | None = None
    ) -> DuplicateCheckResult:
        """Check a not-yet-submitted draft against recent reports."""
        candidates = await self._fetch_candidates(
            draft, self.config.presubmission_candidate_limit, timeout
        )
        duplicates = self._score_candidates(draft, candidates)
        return DuplicateCheckResult.from_duplicates(duplicates)

    async def analyze_batch(
        self, report_ids: list[str], delay_seconds: float | None = None
    ) -> BatchDuplicateAnalysis:
        """Analyze reports one at a time, pausing between them.

        The pause keeps a large batch from saturating the record store.
        A report that cannot be analyzed is recorded in `errors` and the
        batch moves on.
        """
        delay = self.config.batch_delay_seconds if delay_seconds is None else delay_seconds
        summary = BatchDuplicateAnalysis(total=len(report_ids))
        logger.info("Starting duplicate analysis batch of %d reports", len(report_ids))

        for i, report_id in enumerate(report_ids):
            try:
                analysis = await self.analyze_report(report_id)
            except (ReportNotFound, RecordStoreUnavailable) as e:
                logger.warning("Batch item %s failed: %s", report_id, e)
                summary.failed += 1
                summary.errors.append(BatchItemError(report_id=report_id, error=str(e)))
            else:
                summary.analyzed += 1
                if analysis.potential_duplicates_found:
                    summary.flagged += 1
                summary.results.append(analysis)

            if delay > 0 and i < len(report_ids) - 1:
                await asyncio.sleep(delay)

        logger.info(
            "Batch complete: analyzed=%d flagged=%d failed=%d",
            summary.analyzed,
            summary.flagged,
            summary.failed,
        )
        return summary
