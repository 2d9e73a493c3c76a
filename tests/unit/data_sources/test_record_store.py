"""Unit tests for the in-memory record store and shared helpers."""

import json
import logging
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from adr_sentinel.data_sources.record_store import (
    InMemoryRecordStore,
    RecordStore,
    matches_window,
    parse_medicines,
)
from adr_sentinel.exceptions import RecordStoreUnavailable
from adr_sentinel.models.model_report import ReportSummary

NOW = datetime(2024, 6, 1, 12, 0, 0)
SINCE = NOW - timedelta(hours=72)


def _report(**overrides) -> ReportSummary:
    fields = {
        "report_id": "r",
        "medicine_id": "med-1",
        "patient_id": "pat-1",
        "created_at": NOW,
    }
    fields.update(overrides)
    return ReportSummary(**fields)


# --- parse_medicines ---


def test_parse_medicines_skips_malformed_rows(caplog):
    """A bad row is logged and skipped instead of failing the whole catalog."""
    rows = [
        {"id": "med-1", "name": "Tylenol", "generic_name": None, "indications": None},
        {"id": "med-2"},
        {"id": "med-3", "name": "  "},
        {"id": "med-4", "name": "Advil", "indications": ["Pain", ""]},
    ]

    with caplog.at_level(logging.WARNING):
        medicines = parse_medicines(rows)

    assert [m.id for m in medicines] == ["med-1", "med-4"]
    assert medicines[0].indications == []
    assert medicines[1].indications == ["Pain"]
    assert "med-2" in caplog.text
    assert "med-3" in caplog.text


# --- matches_window ---


@pytest.mark.parametrize(
    "report, expected",
    [
        (_report(), True),
        (_report(patient_id="other"), True),
        (_report(medicine_id="other"), True),
        (_report(medicine_id="other", patient_id="other"), False),
        (_report(is_deleted=True), False),
        (_report(is_active=False), False),
        (_report(created_at=SINCE - timedelta(seconds=1)), False),
        (_report(created_at=SINCE), True),
        (_report(created_at=None), False),
        (_report(report_id="self"), False),
    ],
)
def test_matches_window(report, expected):
    assert matches_window(report, "med-1", "pat-1", SINCE, "self") is expected


def test_matches_window_missing_reference_never_matches():
    """None on the query side is not a wildcard."""
    report = _report(medicine_id=None, patient_id=None)
    assert matches_window(report, None, None, SINCE, None) is False


# --- InMemoryRecordStore ---


def test_record_store_is_abstract():
    with pytest.raises(TypeError):
        RecordStore()


@pytest.mark.asyncio
async def test_get_report(memory_store):
    report = await memory_store.get_report("rep-2")

    assert report.side_effect_texts == ["nausea", "dizziness"]
    assert await memory_store.get_report("missing") is None


@pytest.mark.asyncio
async def test_find_reports_by_window_limit(memory_store):
    reports = await memory_store.find_reports_by_window("med-1", None, SINCE, limit=2)

    assert [r.report_id for r in reports] == ["rep-1", "rep-2"]


@pytest.mark.asyncio
async def test_list_all_medicines_returns_copy(memory_store, sample_medicines):
    medicines = await memory_store.list_all_medicines()
    medicines.clear()

    assert len(await memory_store.list_all_medicines()) == len(sample_medicines)


@pytest.mark.asyncio
async def test_from_json_file(tmp_path):
    """Catalog exports load with malformed medicine rows skipped."""
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "medicines": [
                    {"id": "med-1", "name": "Tylenol", "strength": {"value": 500, "unit": "mg"}},
                    {"id": "med-2", "name": ""},
                ],
                "reports": [
                    {
                        "report_id": "rep-1",
                        "medicine_id": "med-1",
                        "side_effect_texts": ["nausea"],
                        "incident_date": "2024-06-01T06:00:00",
                        "created_at": "2024-06-01T07:00:00",
                    }
                ],
            }
        )
    )

    store = InMemoryRecordStore.from_json_file(path)

    medicines = await store.list_all_medicines()
    assert [m.id for m in medicines] == ["med-1"]
    assert medicines[0].strength.unit == "mg"
    report = await store.get_report("rep-1")
    assert report.incident_date == datetime(2024, 6, 1, 6, 0, 0)


def test_from_json_file_missing(tmp_path):
    with pytest.raises(RecordStoreUnavailable, match=r"^\[memory\] Cannot load"):
        InMemoryRecordStore.from_json_file(tmp_path / "nope.json")


def test_from_json_file_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(RecordStoreUnavailable):
        InMemoryRecordStore.from_json_file(path)


def test_from_json_file_invalid_report(tmp_path):
    """Reports are not skipped: a malformed report is a broken export."""
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"reports": [{"report_id": "r", "incident_date": "soon"}]}))

    with pytest.raises(ValidationError):
        InMemoryRecordStore.from_json_file(path)
