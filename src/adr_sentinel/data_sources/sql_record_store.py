"""SQLAlchemy-backed record store.

Queries are blocking, so each one runs in a worker thread with its own
Session; the event loop is never blocked by the database.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from adr_sentinel.constants import DUPLICATE_CANDIDATE_LIMIT
from adr_sentinel.data_sources.record_store import RecordStore, parse_medicines
from adr_sentinel.db.base import make_session_factory
from adr_sentinel.exceptions import RecordStoreUnavailable
from adr_sentinel.models.model_medicine import MedicineRecord
from adr_sentinel.models.model_report import ReportSummary
from adr_sentinel.sqlalchemy.tables import AdverseEventReports, Medicines

logger = logging.getLogger(__name__)


class SQLRecordStore(RecordStore):
    """Record store over the `medicines` and `adverse_event_reports` tables."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> SQLRecordStore:
        return cls(make_session_factory(database_url))

    @property
    def _source_name(self) -> str:
        return "sql"

    async def _run(self, method: str, fn, *args) -> Any:
        """Run fn(session, *args) in a worker thread, mapping DB errors."""

        def call() -> Any:
            with self._session_factory() as session:
                return fn(session, *args)

        try:
            return await asyncio.to_thread(call)
        except SQLAlchemyError as e:
            logger.error("Record store query failed [%s.%s]: %s", self._source_name, method, e)
            raise RecordStoreUnavailable(self._source_name, f"{method} failed: {e}") from e

    # -- Public methods -------------------------------------------------------

    async def list_all_medicines(self) -> list[MedicineRecord]:
        rows = await self._run("list_all_medicines", self._select_medicines)
        return parse_medicines(rows)

    async def find_reports_by_window(
        self,
        medicine_id: str | None,
        patient_id: str | None,
        since: datetime,
        exclude_report_id: str | None = None,
        limit: int = DUPLICATE_CANDIDATE_LIMIT,
    ) -> list[ReportSummary]:
        if medicine_id is None and patient_id is None:
            return []
        return await self._run(
            "find_reports_by_window",
            self._select_window,
            medicine_id,
            patient_id,
            since,
            exclude_report_id,
            limit,
        )

    async def get_report(self, report_id: str) -> ReportSummary | None:
        return await self._run("get_report", self._select_report, report_id)

    # -- Queries (run in worker threads) --------------------------------------

    @staticmethod
    def _select_medicines(session: Session) -> list[dict[str, Any]]:
        rows = session.scalars(select(Medicines).order_by(Medicines.id)).all()
        return [SQLRecordStore._medicine_row(row) for row in rows]

    @staticmethod
    def _select_window(
        session: Session,
        medicine_id: str | None,
        patient_id: str | None,
        since: datetime,
        exclude_report_id: str | None,
        limit: int,
    ) -> list[ReportSummary]:
        shared = []
        if medicine_id is not None:
            shared.append(AdverseEventReports.medicine_id == medicine_id)
        if patient_id is not None:
            shared.append(AdverseEventReports.patient_id == patient_id)

        stmt = select(AdverseEventReports).where(
            AdverseEventReports.is_active.is_(True),
            AdverseEventReports.is_deleted.is_(False),
            AdverseEventReports.created_at >= since,
            or_(*shared),
        )
        if exclude_report_id is not None:
            stmt = stmt.where(AdverseEventReports.id != exclude_report_id)
        stmt = stmt.order_by(AdverseEventReports.created_at, AdverseEventReports.id)
        rows = session.scalars(stmt.limit(limit)).all()
        return [SQLRecordStore._to_summary(row) for row in rows]

    @staticmethod
    def _select_report(session: Session, report_id: str) -> ReportSummary | None:
        row = session.get(AdverseEventReports, report_id)
        return SQLRecordStore._to_summary(row) if row is not None else None

    # -- Row mapping ----------------------------------------------------------

    @staticmethod
    def _medicine_row(row: Medicines) -> dict[str, Any]:
        strength = None
        if row.strength_value is not None:
            strength = {"value": row.strength_value, "unit": row.strength_unit or ""}
        return {
            "id": row.id,
            "name": row.name,
            "generic_name": row.generic_name,
            "manufacturer_name": row.manufacturer_name,
            "category": row.category,
            "dosage_form": row.dosage_form,
            "strength": strength,
            "indications": row.indications,
        }

    @staticmethod
    def _to_summary(row: AdverseEventReports) -> ReportSummary:
        return ReportSummary(
            report_id=row.id,
            medicine_id=row.medicine_id,
            patient_id=row.patient_id,
            side_effect_texts=row.side_effects,
            incident_date=row.incident_date,
            created_at=row.created_at,
            is_active=row.is_active,
            is_deleted=row.is_deleted,
        )
