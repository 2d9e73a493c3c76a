"""
Duplicate report scorer.

Scores how likely two adverse-event reports describe the same real-world
event. Four weighted criteria (weights from DuplicateConfig):

  same medicine      : both references present and equal
  same patient       : both references present and equal
  similar symptoms   : best word-overlap of each of A's side effects in B
  close incident date: 1.0 within a day, linear decay to 0 at the window
"""

import logging
from datetime import datetime

from adr_sentinel.constants import DUPLICATE_SCORE_CAP, SCORE_EPSILON
from adr_sentinel.models.model_duplicates import (
    DuplicateAssessment,
    DuplicateConfig,
    MatchDetails,
)
from adr_sentinel.models.model_report import ReportSummary
from adr_sentinel.services.similarity import word_jaccard_similarity

logger = logging.getLogger(__name__)


def _same_reference(a: str | None, b: str | None) -> bool:
    return a is not None and b is not None and a == b


def side_effect_similarity(effects_a: list[str], effects_b: list[str]) -> float:
    """Average over A's side effects of their best match in B.

    Directional: side_effect_similarity(a, b) need not equal
    side_effect_similarity(b, a). Use symmetric_side_effect_similarity when
    the comparison must not depend on argument order.
    """
    if not effects_a or not effects_b:
        return 0.0
    total = 0.0
    for effect_a in effects_a:
        total += max(word_jaccard_similarity(effect_a, effect_b) for effect_b in effects_b)
    return total / len(effects_a)


def symmetric_side_effect_similarity(effects_a: list[str], effects_b: list[str]) -> float:
    """Mean of both directions of side_effect_similarity."""
    return (
        side_effect_similarity(effects_a, effects_b)
        + side_effect_similarity(effects_b, effects_a)
    ) / 2


def date_proximity(
    date_a: datetime | None,
    date_b: datetime | None,
    window_hours: float,
    same_day_hours: float,
) -> float:
    """0 beyond the window, else 1.0 within `same_day_hours`, else 1 - gap/window."""
    if date_a is None or date_b is None:
        return 0.0
    gap_hours = abs((date_a - date_b).total_seconds()) / 3600
    if gap_hours > window_hours:
        return 0.0
    if gap_hours <= same_day_hours:
        return 1.0
    return max(0.0, 1.0 - gap_hours / window_hours)


class DuplicateScorer:
    """Scores pairs of reports. Stateless apart from its config."""

    def __init__(self, config: DuplicateConfig | None = None) -> None:
        self.config = config or DuplicateConfig()

    def score(self, report_a: ReportSummary, report_b: ReportSummary) -> DuplicateAssessment:
        """Score report_b as a potential duplicate of report_a."""
        weights = self.config.weights

        details = MatchDetails(
            same_medicine=_same_reference(report_a.medicine_id, report_b.medicine_id),
            same_patient=_same_reference(report_a.patient_id, report_b.patient_id),
            symptom_similarity=side_effect_similarity(
                report_a.side_effect_texts, report_b.side_effect_texts
            ),
            date_proximity=date_proximity(
                report_a.incident_date,
                report_b.incident_date,
                self.config.time_window_hours,
                self.config.same_day_hours,
            ),
        )

        raw = (
            (weights.same_medicine if details.same_medicine else 0.0)
            + (weights.same_patient if details.same_patient else 0.0)
            + details.symptom_similarity * weights.similar_symptoms
            + details.date_proximity * weights.close_incident_date
        )
        raw = max(0.0, min(1.0, raw))

        # 1.0 is reserved for the same report compared with itself
        if _same_reference(report_a.report_id, report_b.report_id):
            raw = 1.0
        else:
            raw = min(raw, DUPLICATE_SCORE_CAP)

        logger.debug(
            "Duplicate score %s vs %s: %.3f (%s)",
            report_a.report_id or "<draft>",
            report_b.report_id,
            raw,
            details,
        )
        return DuplicateAssessment(
            candidate_report_id=report_b.report_id,
            score=round(raw, 2),
            match_details=details,
            is_potential_duplicate=raw >= self.config.similarity_threshold - SCORE_EPSILON,
            medicine_id=report_b.medicine_id,
            patient_id=report_b.patient_id,
            incident_date=report_b.incident_date,
            side_effects_count=len(report_b.side_effect_texts),
        )
