"""Unit tests for medicine, report and matching models."""

import pytest
from pydantic import ValidationError

from adr_sentinel.models.model_matching import MatchOptions, MatchType, Suggestion
from adr_sentinel.models.model_medicine import MedicineRecord, Strength
from adr_sentinel.models.model_report import ReportSummary

# --- MedicineRecord ---


def test_medicine_record_coerces_nones_to_defaults():
    """None in optional fields with non-None defaults is replaced by the default."""
    record = MedicineRecord.model_validate(
        {
            "id": "med-1",
            "name": "Tylenol",
            "category": None,
            "dosage_form": None,
            "indications": None,
            "generic_name": None,
        }
    )

    assert record.category == ""
    assert record.dosage_form == ""
    assert record.indications == []
    assert record.generic_name is None


def test_medicine_record_requires_name():
    with pytest.raises(ValidationError):
        MedicineRecord.model_validate({"id": "med-1", "name": None})


def test_medicine_record_rejects_blank_name():
    with pytest.raises(ValidationError, match="name must not be blank"):
        MedicineRecord(id="med-1", name="   ")


def test_medicine_record_drops_empty_indications():
    record = MedicineRecord(id="med-1", name="Advil", indications=["Pain", "", "Fever"])
    assert record.indications == ["Pain", "Fever"]


def test_medicine_record_is_frozen():
    record = MedicineRecord(id="med-1", name="Advil")
    with pytest.raises(ValidationError):
        record.name = "Motrin"


def test_strength():
    record = MedicineRecord(id="med-1", name="Advil", strength={"value": 200, "unit": "mg"})
    assert record.strength == Strength(value=200.0, unit="mg")


# --- ReportSummary ---


def test_report_summary_defaults():
    """Drafts carry no id; metadata defaults to an active, undeleted report."""
    report = ReportSummary.model_validate({"side_effect_texts": None})

    assert report.report_id is None
    assert report.side_effect_texts == []
    assert report.is_active is True
    assert report.is_deleted is False


# --- MatchType ---


def test_with_prefix():
    assert MatchType.FUZZY.with_prefix() == MatchType.PREFIX_FUZZY
    assert MatchType.CONTAINS_GENERIC.with_prefix() == MatchType.PREFIX_CONTAINS_GENERIC
    assert MatchType.EXACT_NAME.with_prefix() == MatchType.EXACT_NAME
    assert MatchType.PREFIX_FUZZY.with_prefix() == MatchType.PREFIX_FUZZY


def test_is_exact():
    assert MatchType.EXACT_GENERIC.is_exact
    assert not MatchType.PREFIX_CONTAINS_NAME.is_exact


def test_match_type_serializes_to_value():
    assert MatchType("prefix_high_similarity_name") is MatchType.PREFIX_HIGH_SIMILARITY_NAME
    assert MatchType.FUZZY == "fuzzy"


# --- MatchOptions ---


def test_match_options_defaults():
    options = MatchOptions()
    assert options.max_results == 10
    assert options.min_score == 0.3
    assert options.include_exact is True


@pytest.mark.parametrize(
    "fields", [{"max_results": 0}, {"min_score": -0.1}, {"min_score": 1.5}]
)
def test_match_options_validation(fields):
    with pytest.raises(ValidationError):
        MatchOptions(**fields)


def test_suggestion_json():
    suggestion = Suggestion(
        id="med-5", name="Amoxil", score=0.8, match_type=MatchType.PREFIX_CONTAINS_NAME
    )
    dumped = suggestion.model_dump(mode="json")
    assert dumped["match_type"] == "prefix_contains_name"
    assert dumped["generic_name"] is None
