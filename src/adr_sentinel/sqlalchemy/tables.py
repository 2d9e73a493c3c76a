from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, Text
from sqlalchemy.orm import Mapped, mapped_column

from adr_sentinel.db.base import Base


class Medicines(Base):
    __tablename__ = "medicines"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    generic_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    manufacturer_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    dosage_form: Mapped[str | None] = mapped_column(Text, nullable=True)
    strength_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    strength_unit: Mapped[str | None] = mapped_column(Text, nullable=True)
    indications: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)


class AdverseEventReports(Base):
    __tablename__ = "adverse_event_reports"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    medicine_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    patient_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    side_effects: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    incident_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
