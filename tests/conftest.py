"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest

from adr_sentinel.data_sources.record_store import InMemoryRecordStore
from adr_sentinel.models.model_medicine import MedicineRecord, Strength
from adr_sentinel.models.model_report import ReportSummary

NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    """Fixed wall-clock time used by duplicate-detection tests."""
    return NOW


@pytest.fixture
def sample_medicines() -> list[MedicineRecord]:
    """Small catalog covering brand, generic and indication-only matches."""
    return [
        MedicineRecord(
            id="med-1",
            name="Tylenol",
            generic_name="Acetaminophen",
            manufacturer_name="Johnson & Johnson",
            category="Analgesic",
            dosage_form="tablet",
            strength=Strength(value=500, unit="mg"),
            indications=["Pain", "Fever"],
        ),
        MedicineRecord(
            id="med-2",
            name="Acetaminophen",
            generic_name="Acetaminophen",
            manufacturer_name="Generic Labs",
            category="Analgesic",
            dosage_form="tablet",
            indications=["Pain", "Fever"],
        ),
        MedicineRecord(
            id="med-3",
            name="Advil",
            generic_name="Ibuprofen",
            manufacturer_name="Pfizer",
            category="Analgesic",
            indications=["Pain", "Inflammation"],
        ),
        MedicineRecord(
            id="med-4",
            name="Glucophage",
            generic_name="Metformin",
            manufacturer_name="Merck",
            category="Diabetes",
            indications=["Type 2 diabetes"],
        ),
        MedicineRecord(
            id="med-5",
            name="Amoxil",
            generic_name="Amoxicillin",
            manufacturer_name="GSK",
            category="Antibiotic",
            indications=["Bacterial infection"],
        ),
        MedicineRecord(
            id="med-6",
            name="Lipitor",
            generic_name="Atorvastatin",
            manufacturer_name="Pfizer",
            category="Cardiovascular",
            indications=["High cholesterol"],
        ),
    ]


@pytest.fixture
def sample_reports() -> list[ReportSummary]:
    """Recent reports around NOW for duplicate detection."""
    return [
        ReportSummary(
            report_id="rep-1",
            medicine_id="med-1",
            patient_id="pat-1",
            side_effect_texts=["severe nausea", "headache"],
            incident_date=NOW - timedelta(hours=6),
            created_at=NOW - timedelta(hours=5),
        ),
        ReportSummary(
            report_id="rep-2",
            medicine_id="med-1",
            patient_id="pat-1",
            side_effect_texts=["nausea", "dizziness"],
            incident_date=NOW - timedelta(hours=4),
            created_at=NOW - timedelta(hours=3),
        ),
        ReportSummary(
            report_id="rep-3",
            medicine_id="med-1",
            patient_id="pat-2",
            side_effect_texts=["skin rash"],
            incident_date=NOW - timedelta(days=10),
            created_at=NOW - timedelta(hours=2),
        ),
        ReportSummary(
            report_id="rep-4",
            medicine_id="med-3",
            patient_id="pat-9",
            side_effect_texts=["stomach pain"],
            incident_date=NOW - timedelta(hours=1),
            created_at=NOW - timedelta(hours=1),
        ),
        ReportSummary(
            report_id="rep-old",
            medicine_id="med-1",
            patient_id="pat-1",
            side_effect_texts=["severe nausea"],
            incident_date=NOW - timedelta(days=9),
            created_at=NOW - timedelta(days=9),
        ),
        ReportSummary(
            report_id="rep-deleted",
            medicine_id="med-1",
            patient_id="pat-1",
            side_effect_texts=["severe nausea", "headache"],
            incident_date=NOW - timedelta(hours=6),
            created_at=NOW - timedelta(hours=4),
            is_deleted=True,
        ),
    ]


@pytest.fixture
def memory_store(sample_medicines, sample_reports) -> InMemoryRecordStore:
    """In-memory record store over the sample catalog and reports."""
    return InMemoryRecordStore(sample_medicines, sample_reports)
