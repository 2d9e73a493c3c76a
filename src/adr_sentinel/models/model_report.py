"""Pydantic model for the report fields used by duplicate detection."""

from datetime import datetime

from pydantic import BaseModel, model_validator


class ReportSummary(BaseModel):
    """The subset of an adverse-event report needed for duplicate scoring.

    ``report_id`` is None for drafts that have not been persisted yet.
    ``created_at``, ``is_active`` and ``is_deleted`` are store-side metadata
    used only to select candidates; they never influence the score.
    """

    report_id: str | None = None
    medicine_id: str | None = None
    patient_id: str | None = None
    side_effect_texts: list[str] = []
    incident_date: datetime | None = None
    created_at: datetime | None = None
    is_active: bool = True
    is_deleted: bool = False

    @model_validator(mode="before")
    @classmethod
    def coerce_nones(cls, values: dict) -> dict:
        for field_name, field_info in cls.model_fields.items():
            if values.get(field_name) is None and field_info.default is not None:
                values[field_name] = field_info.default
        return values
