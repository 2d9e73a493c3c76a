"""Pydantic models for duplicate report detection."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adr_sentinel.constants import (
    BATCH_DELAY_SECONDS,
    DUPLICATE_CANDIDATE_LIMIT,
    DUPLICATE_SAME_DAY_HOURS,
    DUPLICATE_SIMILARITY_THRESHOLD,
    DUPLICATE_TIME_WINDOW_HOURS,
    DUPLICATE_WEIGHTS,
    PRESUBMISSION_CANDIDATE_LIMIT,
)

WEIGHT_SUM_TOLERANCE = 1e-6


class DuplicateWeights(BaseModel):
    """Weight of each duplicate criterion. Must sum to 1.0."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    same_medicine: float = Field(
        default=DUPLICATE_WEIGHTS["same_medicine"], ge=0.0, alias="sameMedicine"
    )
    same_patient: float = Field(
        default=DUPLICATE_WEIGHTS["same_patient"], ge=0.0, alias="samePatient"
    )
    similar_symptoms: float = Field(
        default=DUPLICATE_WEIGHTS["similar_symptoms"],
        ge=0.0,
        alias="similarSymptoms",
    )
    close_incident_date: float = Field(
        default=DUPLICATE_WEIGHTS["close_incident_date"],
        ge=0.0,
        alias="closeIncidentDate",
    )

    @model_validator(mode="after")
    def check_sum(self) -> "DuplicateWeights":
        total = (
            self.same_medicine
            + self.same_patient
            + self.similar_symptoms
            + self.close_incident_date
        )
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"duplicate weights must sum to 1.0, got {total:.4f}")
        return self


class DuplicateConfig(BaseModel):
    """Thresholds, weights and fetch limits for duplicate detection.

    Accepts both snake_case names and the camelCase keys used by the
    reporting platform (``timeWindowHours``, ``similarityThreshold``).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    time_window_hours: float = Field(
        default=DUPLICATE_TIME_WINDOW_HOURS, gt=0.0, alias="timeWindowHours"
    )
    similarity_threshold: float = Field(
        default=DUPLICATE_SIMILARITY_THRESHOLD,
        ge=0.0,
        le=1.0,
        alias="similarityThreshold",
    )
    weights: DuplicateWeights = DuplicateWeights()
    same_day_hours: float = Field(default=DUPLICATE_SAME_DAY_HOURS, ge=0.0)
    candidate_limit: int = Field(default=DUPLICATE_CANDIDATE_LIMIT, ge=1)
    presubmission_candidate_limit: int = Field(
        default=PRESUBMISSION_CANDIDATE_LIMIT, ge=1
    )
    batch_delay_seconds: float = Field(default=BATCH_DELAY_SECONDS, ge=0.0)
    fetch_timeout_seconds: float | None = Field(default=None, gt=0.0)


class MatchDetails(BaseModel):
    """Per-criterion breakdown of a duplicate score."""

    same_medicine: bool = False
    same_patient: bool = False
    symptom_similarity: float = 0.0
    date_proximity: float = 0.0


class DuplicateAssessment(BaseModel):
    """Scored judgment of whether a candidate report duplicates another.

    Created per request; persisting a confirmed flag is the workflow
    layer's job.
    """

    candidate_report_id: str | None = None
    score: float = Field(ge=0.0, le=1.0)
    match_details: MatchDetails
    is_potential_duplicate: bool
    medicine_id: str | None = None
    patient_id: str | None = None
    incident_date: datetime | None = None
    side_effects_count: int = 0


class DuplicateCheckResult(BaseModel):
    """Outcome of a pre-submission duplicate check."""

    has_potential_duplicates: bool
    duplicate_count: int
    duplicates: list[DuplicateAssessment] = []

    @classmethod
    def from_duplicates(
        cls, duplicates: list[DuplicateAssessment]
    ) -> "DuplicateCheckResult":
        return cls(
            has_potential_duplicates=bool(duplicates),
            duplicate_count=len(duplicates),
            duplicates=duplicates,
        )


class DuplicateAnalysis(BaseModel):
    """Full duplicate analysis of one persisted report."""

    report_id: str
    analysis_date: datetime
    total_candidates_checked: int
    potential_duplicates_found: int
    duplicates: list[DuplicateAssessment] = []
    time_window_hours: float
    similarity_threshold: float


class BatchItemError(BaseModel):
    """A report the batch job could not analyze."""

    report_id: str
    error: str


class BatchDuplicateAnalysis(BaseModel):
    """Summary of a batch duplicate-analysis run."""

    total: int = 0
    analyzed: int = 0
    flagged: int = 0
    failed: int = 0
    errors: list[BatchItemError] = []
    results: list[DuplicateAnalysis] = []
