"""Data models for ADR Sentinel."""

from adr_sentinel.models.model_duplicates import (
    BatchDuplicateAnalysis,
    DuplicateAnalysis,
    DuplicateAssessment,
    DuplicateCheckResult,
    DuplicateConfig,
    DuplicateWeights,
    MatchDetails,
)
from adr_sentinel.models.model_matching import (
    IndexStats,
    MatchOptions,
    MatchType,
    SimilarityScore,
    Suggestion,
)
from adr_sentinel.models.model_medicine import MedicineRecord, Strength
from adr_sentinel.models.model_report import ReportSummary

__all__ = [
    "BatchDuplicateAnalysis",
    "DuplicateAnalysis",
    "DuplicateAssessment",
    "DuplicateCheckResult",
    "DuplicateConfig",
    "DuplicateWeights",
    "IndexStats",
    "MatchDetails",
    "MatchOptions",
    "MatchType",
    "MedicineRecord",
    "ReportSummary",
    "SimilarityScore",
    "Strength",
    "Suggestion",
]
