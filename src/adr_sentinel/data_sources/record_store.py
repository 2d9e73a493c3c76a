"""
Record store adapters.

The record store is the document datastore behind the reporting platform.
The engine only reads from it:

  1. list_all_medicines    : full catalog fetch for search index builds
  2. find_reports_by_window: bounded candidate fetch for duplicate checks
  3. get_report            : single report lookup by id
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from adr_sentinel.constants import DUPLICATE_CANDIDATE_LIMIT
from adr_sentinel.exceptions import RecordStoreUnavailable
from adr_sentinel.models.model_medicine import MedicineRecord
from adr_sentinel.models.model_report import ReportSummary

logger = logging.getLogger(__name__)


def parse_medicines(rows: Iterable[dict[str, Any]]) -> list[MedicineRecord]:
    """Validate raw catalog rows, skipping any row that is malformed.

    A single bad record must not block matches on the rest of the catalog.
    """
    medicines: list[MedicineRecord] = []
    for row in rows:
        try:
            medicines.append(MedicineRecord.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed medicine record id=%s: %s",
                row.get("id"),
                e.errors()[0]["msg"],
            )
    return medicines


def matches_window(
    report: ReportSummary,
    medicine_id: str | None,
    patient_id: str | None,
    since: datetime,
    exclude_report_id: str | None,
) -> bool:
    """True if report is an active candidate sharing a medicine or patient."""
    if not report.is_active or report.is_deleted:
        return False
    if exclude_report_id is not None and report.report_id == exclude_report_id:
        return False
    if report.created_at is None or report.created_at < since:
        return False
    same_medicine = medicine_id is not None and report.medicine_id == medicine_id
    same_patient = patient_id is not None and report.patient_id == patient_id
    return same_medicine or same_patient


class RecordStore(ABC):
    """Read-only view of the medicine catalog and adverse-event reports."""

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this store, e.g. 'memory'."""
        ...

    @abstractmethod
    async def list_all_medicines(self) -> list[MedicineRecord]:
        """Return every medicine in the catalog."""
        ...

    @abstractmethod
    async def find_reports_by_window(
        self,
        medicine_id: str | None,
        patient_id: str | None,
        since: datetime,
        exclude_report_id: str | None = None,
        limit: int = DUPLICATE_CANDIDATE_LIMIT,
    ) -> list[ReportSummary]:
        """Return active, non-deleted reports created at or after `since`
        that share the medicine OR the patient reference.
        """
        ...

    @abstractmethod
    async def get_report(self, report_id: str) -> ReportSummary | None:
        """Return a single report, or None if it does not exist."""
        ...


class InMemoryRecordStore(RecordStore):
    """Record store backed by Python lists.

    Used by tests and by the CLI, which loads a JSON export of the catalog
    and reports.
    """

    def __init__(
        self,
        medicines: Iterable[MedicineRecord] = (),
        reports: Iterable[ReportSummary] = (),
    ) -> None:
        self._medicines: list[MedicineRecord] = list(medicines)
        self._reports: list[ReportSummary] = list(reports)

    @property
    def _source_name(self) -> str:
        return "memory"

    @classmethod
    def from_json_file(cls, path: Path | str) -> InMemoryRecordStore:
        """Load a store from a JSON file shaped like
        ``{"medicines": [...], "reports": [...]}``.
        """
        path = Path(path)
        try:
            payload = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise RecordStoreUnavailable("memory", f"Cannot load {path}: {e}") from e

        medicines = parse_medicines(payload.get("medicines", []))
        reports = [ReportSummary.model_validate(r) for r in payload.get("reports", [])]
        logger.info(
            "Loaded %d medicines and %d reports from %s",
            len(medicines),
            len(reports),
            path,
        )
        return cls(medicines, reports)

    def add_medicine(self, medicine: MedicineRecord) -> None:
        self._medicines.append(medicine)

    def add_report(self, report: ReportSummary) -> None:
        self._reports.append(report)

    async def list_all_medicines(self) -> list[MedicineRecord]:
        return list(self._medicines)

    async def find_reports_by_window(
        self,
        medicine_id: str | None,
        patient_id: str | None,
        since: datetime,
        exclude_report_id: str | None = None,
        limit: int = DUPLICATE_CANDIDATE_LIMIT,
    ) -> list[ReportSummary]:
        found = [
            r
            for r in self._reports
            if matches_window(r, medicine_id, patient_id, since, exclude_report_id)
        ]
        return found[:limit]

    async def get_report(self, report_id: str) -> ReportSummary | None:
        for report in self._reports:
            if report.report_id == report_id:
                return report
        return None
