"""Unit tests for the adr-sentinel command-line interface."""

import json
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from adr_sentinel.cli.cli import main
from adr_sentinel.config import Settings


def _invoke(runner, args):
    return runner.invoke(main, ["--log-level", "ERROR", *args])


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def data_file(tmp_path, sample_medicines):
    """JSON export whose reports were created in the last few hours."""
    now = datetime.now()
    reports = [
        {
            "report_id": "rep-1",
            "medicine_id": "med-1",
            "patient_id": "pat-1",
            "side_effect_texts": ["severe nausea", "headache"],
            "incident_date": (now - timedelta(hours=6)).isoformat(),
            "created_at": (now - timedelta(hours=5)).isoformat(),
        },
        {
            "report_id": "rep-2",
            "medicine_id": "med-1",
            "patient_id": "pat-1",
            "side_effect_texts": ["nausea", "dizziness"],
            "incident_date": (now - timedelta(hours=4)).isoformat(),
            "created_at": (now - timedelta(hours=3)).isoformat(),
        },
    ]
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "medicines": [m.model_dump(mode="json") for m in sample_medicines],
                "reports": reports,
            }
        )
    )
    return path


def test_search_exact(runner, data_file):
    result = _invoke(runner, ["search", "Tylenol", "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert rows[0]["id"] == "med-1"
    assert rows[0]["match_type"] == "exact_name"
    assert rows[0]["score"] == 1.0
    assert rows[0]["highlighted"] == "**Tylenol**"


def test_search_options(runner, data_file):
    result = _invoke(
        runner, ["search", "pain", "--data", str(data_file), "-n", "2", "--min-score", "0.5"]
    )

    assert result.exit_code == 0, result.output
    assert [row["id"] for row in json.loads(result.output)] == ["med-3", "med-1"]


def test_search_defaults_come_from_settings(runner, data_file):
    settings = Settings(_env_file=None, match_max_results=1, match_min_score=0.5)

    with patch(
        "adr_sentinel.services.matching_service.get_settings", return_value=settings
    ):
        result = _invoke(runner, ["search", "pain", "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    assert [row["id"] for row in json.loads(result.output)] == ["med-3"]


def test_search_no_exact(runner, data_file):
    result = _invoke(runner, ["search", "tylenol", "--data", str(data_file), "--no-exact"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0]["match_type"] == "exact_name"


def test_suggest(runner, data_file):
    result = _invoke(runner, ["suggest", "amo", "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0]["id"] == "med-5"


def test_duplicates(runner, data_file):
    result = _invoke(runner, ["duplicates", "rep-1", "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    analysis = json.loads(result.output)
    assert analysis["potential_duplicates_found"] == 1
    assert analysis["duplicates"][0]["candidate_report_id"] == "rep-2"


def test_duplicates_unknown_report(runner, data_file):
    result = _invoke(runner, ["duplicates", "nope", "--data", str(data_file)])

    assert result.exit_code == 1
    assert "Report not found: nope" in result.output


def test_check_draft(runner, data_file, tmp_path):
    draft = tmp_path / "draft.json"
    draft.write_text(
        json.dumps(
            {
                "medicine_id": "med-1",
                "patient_id": "pat-1",
                "side_effect_texts": ["nausea"],
                "incident_date": datetime.now().isoformat(),
            }
        )
    )

    result = _invoke(runner, ["check-draft", str(draft), "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    check = json.loads(result.output)
    assert check["has_potential_duplicates"] is True
    assert check["duplicate_count"] == 2


def test_batch(runner, data_file):
    result = _invoke(
        runner, ["batch", "rep-1", "missing", "--data", str(data_file), "--delay", "0"]
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.output)
    assert summary["total"] == 2
    assert summary["analyzed"] == 1
    assert summary["failed"] == 1
    assert "results" not in summary


def test_index_stats(runner, data_file, sample_medicines):
    result = _invoke(runner, ["index-stats", "--data", str(data_file)])

    assert result.exit_code == 0, result.output
    stats = json.loads(result.output)
    assert stats["index_size"] == len(sample_medicines)
    assert stats["status"] == "fresh"


def test_unreadable_data_file(runner, tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{oops")

    result = _invoke(runner, ["search", "tylenol", "--data", str(path)])

    assert result.exit_code == 1
    assert "Cannot load" in result.output


def test_missing_data_file(runner, tmp_path):
    result = _invoke(runner, ["search", "tylenol", "--data", str(tmp_path / "nope.json")])

    assert result.exit_code == 2
