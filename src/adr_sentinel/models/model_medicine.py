"""Pydantic models for canonical medicine catalog records."""

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Strength(BaseModel):
    """Dosage strength, e.g. 500 mg."""

    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = ""


class MedicineRecord(BaseModel):
    """A single canonical medicine as held by the record store.

    Records are immutable: the search index keeps a snapshot of them and a
    refresh replaces the whole snapshot rather than editing records.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    generic_name: str | None = None
    manufacturer_name: str | None = None
    category: str = ""
    dosage_form: str = ""
    strength: Strength | None = None
    indications: list[str] = []

    @model_validator(mode="before")
    @classmethod
    def coerce_nones(cls, values: dict) -> dict:
        for field_name, field_info in cls.model_fields.items():
            if (
                values.get(field_name) is None
                and not field_info.is_required()
                and field_info.default is not None
            ):
                values[field_name] = field_info.default
        return values

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("indications")
    @classmethod
    def drop_empty_indications(cls, value: list[str]) -> list[str]:
        return [v for v in value if v]
