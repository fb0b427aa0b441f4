"""Hydrogeology field records: sites, boreholes, water levels, pump tests, water quality.

Every class here is a tracked kind (pushed from devices, pulled back to
them) except the pump-test children, which travel inside their parent.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aquapack.models.base import Base, JSONType, TrackedModel, UUIDPrimaryKeyMixin
from aquapack.models.enums import (
    DepthUnit,
    DischargeUnit,
    MeasurementMethod,
    MeasurementType,
    PumpTestType,
    QAStatus,
    WellType,
)
from aquapack.models.organization import Project


class Site(TrackedModel):
    __tablename__ = "site"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("project.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    location: Mapped[dict] = mapped_column(JSONType, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    site_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    access_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    qa_status: Mapped[QAStatus] = mapped_column(default=QAStatus.PENDING, nullable=False)

    # Relationships
    project: Mapped["Project"] = relationship()

    __table_args__ = (
        UniqueConstraint("device_id", "local_id", name="uq_site_device_local"),
        Index("ix_site_project", "project_id"),
        Index("ix_site_updated_at", "updated_at"),
    )


class Borehole(TrackedModel):
    __tablename__ = "borehole"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("site.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    well_type: Mapped[WellType] = mapped_column(nullable=False)
    total_depth: Mapped[float] = mapped_column(Float, nullable=False)
    depth_unit: Mapped[DepthUnit] = mapped_column(nullable=False)
    drilling_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    drilling_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    driller: Mapped[str | None] = mapped_column(String(100), nullable=True)
    diameter: Mapped[float | None] = mapped_column(Float, nullable=True)
    casing_details: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    screen_intervals: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    lithology_log: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    static_water_level: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    qa_status: Mapped[QAStatus] = mapped_column(default=QAStatus.PENDING, nullable=False)

    __table_args__ = (
        UniqueConstraint("device_id", "local_id", name="uq_borehole_device_local"),
        Index("ix_borehole_site", "site_id"),
        Index("ix_borehole_updated_at", "updated_at"),
    )


class WaterLevelMeasurement(TrackedModel):
    __tablename__ = "water_level_measurement"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("site.id"), nullable=False
    )
    borehole_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("borehole.id"), nullable=True
    )
    measurement_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    depth_to_water: Mapped[float] = mapped_column(Float, nullable=False)
    depth_unit: Mapped[DepthUnit] = mapped_column(nullable=False)
    measurement_method: Mapped[MeasurementMethod] = mapped_column(nullable=False)
    measurement_type: Mapped[MeasurementType] = mapped_column(nullable=False)
    reference_point: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    qa_status: Mapped[QAStatus] = mapped_column(default=QAStatus.PENDING, nullable=False)

    __table_args__ = (
        UniqueConstraint("device_id", "local_id", name="uq_water_level_device_local"),
        Index("ix_water_level_site", "site_id"),
        Index("ix_water_level_measurement_updated_at", "updated_at"),
    )


class PumpTest(TrackedModel):
    __tablename__ = "pump_test"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("site.id"), nullable=False
    )
    borehole_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("borehole.id"), nullable=True
    )
    test_type: Mapped[PumpTestType] = mapped_column(nullable=False)
    test_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    static_water_level: Mapped[float | None] = mapped_column(Float, nullable=True)
    pump_depth: Mapped[float | None] = mapped_column(Float, nullable=True)
    pump_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    qa_status: Mapped[QAStatus] = mapped_column(default=QAStatus.PENDING, nullable=False)

    # Relationships
    entries: Mapped[list["PumpTestEntry"]] = relationship(
        back_populates="pump_test",
        cascade="all, delete-orphan",
        order_by="PumpTestEntry.elapsed_minutes",
    )
    steps: Mapped[list["PumpTestStep"]] = relationship(
        back_populates="pump_test",
        cascade="all, delete-orphan",
        order_by="PumpTestStep.step_number",
    )

    __table_args__ = (
        UniqueConstraint("device_id", "local_id", name="uq_pump_test_device_local"),
        Index("ix_pump_test_site", "site_id"),
        Index("ix_pump_test_updated_at", "updated_at"),
    )


class PumpTestEntry(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "pump_test_entry"

    pump_test_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pump_test.id"), nullable=False
    )
    elapsed_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    elapsed_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    depth_to_water: Mapped[float] = mapped_column(Float, nullable=False)
    drawdown: Mapped[float | None] = mapped_column(Float, nullable=True)
    discharge: Mapped[float | None] = mapped_column(Float, nullable=True)
    discharge_unit: Mapped[DischargeUnit | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Relationships
    pump_test: Mapped["PumpTest"] = relationship(back_populates="entries")

    __table_args__ = (
        Index("ix_pump_test_entry_test", "pump_test_id"),
    )


class PumpTestStep(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "pump_test_step"

    pump_test_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pump_test.id"), nullable=False
    )
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    end_minutes: Mapped[float] = mapped_column(Float, nullable=False)
    target_discharge: Mapped[float] = mapped_column(Float, nullable=False)
    actual_discharge: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Relationships
    pump_test: Mapped["PumpTest"] = relationship(back_populates="steps")

    __table_args__ = (
        UniqueConstraint("pump_test_id", "step_number", name="uq_pump_test_step_number"),
    )


class WaterQualityReading(TrackedModel):
    __tablename__ = "water_quality_reading"

    site_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("site.id"), nullable=False
    )
    borehole_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("borehole.id"), nullable=True
    )
    sample_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sample_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Field parameters
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature_unit: Mapped[str] = mapped_column(String(12), default="celsius", nullable=False)
    ph: Mapped[float | None] = mapped_column(Float, nullable=True)
    electrical_conductivity: Mapped[float | None] = mapped_column(Float, nullable=True)
    ec_unit: Mapped[str] = mapped_column(String(8), default="uS/cm", nullable=False)
    total_dissolved_solids: Mapped[float | None] = mapped_column(Float, nullable=True)
    tds_unit: Mapped[str] = mapped_column(String(8), default="mg/L", nullable=False)
    dissolved_oxygen: Mapped[float | None] = mapped_column(Float, nullable=True)
    do_unit: Mapped[str] = mapped_column(String(8), default="mg/L", nullable=False)
    turbidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    turbidity_unit: Mapped[str] = mapped_column(String(8), default="NTU", nullable=False)
    redox_potential: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Instrument metadata
    instrument_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    calibration_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    qa_status: Mapped[QAStatus] = mapped_column(default=QAStatus.PENDING, nullable=False)

    __table_args__ = (
        UniqueConstraint("device_id", "local_id", name="uq_water_quality_device_local"),
        Index("ix_water_quality_site", "site_id"),
        Index("ix_water_quality_reading_updated_at", "updated_at"),
    )
