"""Typed payloads for each tracked entity kind.

``<Kind>Create`` validates a full record, ``<Kind>Update`` a partial one
(only fields the device sent are applied), ``<Kind>Read`` is what pull and
push responses return. Every payload may carry ``updatedAt``, the device's
base timestamp for conflict detection; it is never written to storage.
"""

import uuid
from datetime import datetime
from typing import ClassVar, Literal

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from aquapack.core.clock import ensure_utc
from aquapack.models.enums import (
    DepthUnit,
    DischargeUnit,
    MeasurementMethod,
    MeasurementType,
    PumpTestType,
    QAStatus,
    SyncStatus,
    WellType,
)
from aquapack.schemas import CamelModel

# Payload attributes the engine consumes itself instead of writing to columns.
NON_COLUMN_FIELDS = frozenset({
    "updated_at",
    "site_local_id",
    "borehole_local_id",
    "entries",
    "steps",
})


class SyncPayload(CamelModel):
    # Fields an update may omit but never clear; their columns are NOT NULL.
    not_nullable: ClassVar[tuple[str, ...]] = ()

    updated_at: datetime | None = Field(
        default=None,
        description="Server updatedAt the device last saw; epoch when absent",
    )

    @model_validator(mode="after")
    def _reject_cleared_fields(self):
        cleared = [
            to_camel(name)
            for name in self.not_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


class SiteRef(CamelModel):
    """Parent site by server id, or by local id when created offline on the same device."""

    site_id: uuid.UUID | None = None
    site_local_id: str | None = Field(default=None, max_length=100)


class RequiredSiteRef(SiteRef):
    @model_validator(mode="after")
    def _require_site(self):
        if self.site_id is None and not self.site_local_id:
            raise ValueError("siteId or siteLocalId is required")
        return self


class BoreholeRef(CamelModel):
    borehole_id: uuid.UUID | None = None
    borehole_local_id: str | None = Field(default=None, max_length=100)


class ReadBase(CamelModel):
    id: uuid.UUID
    local_id: str | None
    device_id: str | None
    sync_status: SyncStatus
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


def _check_range(from_depth: float | None, to_depth: float | None) -> None:
    if from_depth is not None and to_depth is not None and to_depth <= from_depth:
        raise ValueError("toDepth must be greater than fromDepth")


# --- Site ---

class GeoLocation(CamelModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, gt=0)
    altitude: float | None = None
    captured_at: datetime


class SiteCreate(SyncPayload):
    project_id: uuid.UUID
    name: str = Field(min_length=2, max_length=100)
    code: str = Field(min_length=1, max_length=20)
    location: GeoLocation
    description: str | None = Field(default=None, max_length=1000)
    site_type: str | None = Field(default=None, max_length=50)
    access_notes: str | None = Field(default=None, max_length=500)


class SiteUpdate(SyncPayload):
    not_nullable = ("name", "code", "location")

    # A site never moves between projects through sync.
    name: str | None = Field(default=None, min_length=2, max_length=100)
    code: str | None = Field(default=None, min_length=1, max_length=20)
    location: GeoLocation | None = None
    description: str | None = Field(default=None, max_length=1000)
    site_type: str | None = Field(default=None, max_length=50)
    access_notes: str | None = Field(default=None, max_length=500)


class ProjectSummary(CamelModel):
    id: uuid.UUID
    name: str
    code: str

    model_config = ConfigDict(from_attributes=True)


class SiteRead(ReadBase):
    project_id: uuid.UUID
    name: str
    code: str
    location: dict
    description: str | None
    site_type: str | None
    access_notes: str | None
    qa_status: QAStatus


# --- Borehole ---

class CasingInterval(CamelModel):
    id: str | None = None
    from_depth: float = Field(ge=0)
    to_depth: float = Field(ge=0)
    material: str = Field(min_length=1)
    diameter: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _depths(self):
        _check_range(self.from_depth, self.to_depth)
        return self


class ScreenInterval(CamelModel):
    id: str | None = None
    from_depth: float = Field(ge=0)
    to_depth: float = Field(ge=0)
    slot_size: float | None = Field(default=None, gt=0)
    material: str | None = None

    @model_validator(mode="after")
    def _depths(self):
        _check_range(self.from_depth, self.to_depth)
        return self


class LithologyInterval(CamelModel):
    id: str | None = None
    from_depth: float = Field(ge=0)
    to_depth: float = Field(ge=0)
    primary_lithology: str = Field(min_length=1)
    secondary_lithology: str | None = None
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, max_length=50)
    grain_size: str | None = Field(default=None, max_length=50)
    water_bearing: bool

    @model_validator(mode="after")
    def _depths(self):
        _check_range(self.from_depth, self.to_depth)
        return self


class _BoreholeFields(SyncPayload):
    @model_validator(mode="after")
    def _screens_within_total_depth(self):
        if self.total_depth is not None and self.screen_intervals:
            for interval in self.screen_intervals:
                if interval.to_depth > self.total_depth:
                    raise ValueError("Screen intervals cannot exceed total depth")
        return self


class BoreholeCreate(_BoreholeFields, RequiredSiteRef):
    name: str = Field(min_length=1, max_length=100)
    well_type: WellType
    total_depth: float = Field(gt=0)
    depth_unit: DepthUnit
    drilling_date: datetime | None = None
    drilling_method: str | None = Field(default=None, max_length=100)
    driller: str | None = Field(default=None, max_length=100)
    diameter: float | None = Field(default=None, gt=0)
    casing_details: list[CasingInterval] | None = None
    screen_intervals: list[ScreenInterval] | None = None
    lithology_log: list[LithologyInterval] | None = None
    static_water_level: float | None = None
    notes: str | None = Field(default=None, max_length=2000)


class BoreholeUpdate(_BoreholeFields):
    not_nullable = ("name", "well_type", "total_depth", "depth_unit")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    well_type: WellType | None = None
    total_depth: float | None = Field(default=None, gt=0)
    depth_unit: DepthUnit | None = None
    drilling_date: datetime | None = None
    drilling_method: str | None = Field(default=None, max_length=100)
    driller: str | None = Field(default=None, max_length=100)
    diameter: float | None = Field(default=None, gt=0)
    casing_details: list[CasingInterval] | None = None
    screen_intervals: list[ScreenInterval] | None = None
    lithology_log: list[LithologyInterval] | None = None
    static_water_level: float | None = None
    notes: str | None = Field(default=None, max_length=2000)


class BoreholeRead(ReadBase):
    site_id: uuid.UUID
    name: str
    well_type: WellType
    total_depth: float
    depth_unit: DepthUnit
    drilling_date: datetime | None
    drilling_method: str | None
    driller: str | None
    diameter: float | None
    casing_details: list | None
    screen_intervals: list | None
    lithology_log: list | None
    static_water_level: float | None
    notes: str | None
    qa_status: QAStatus


# --- Water level ---

class WaterLevelCreate(SyncPayload, RequiredSiteRef, BoreholeRef):
    measurement_datetime: datetime
    depth_to_water: float
    depth_unit: DepthUnit
    measurement_method: MeasurementMethod
    measurement_type: MeasurementType
    reference_point: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)


class WaterLevelUpdate(SyncPayload, BoreholeRef):
    not_nullable = (
        "measurement_datetime",
        "depth_to_water",
        "depth_unit",
        "measurement_method",
        "measurement_type",
    )

    measurement_datetime: datetime | None = None
    depth_to_water: float | None = None
    depth_unit: DepthUnit | None = None
    measurement_method: MeasurementMethod | None = None
    measurement_type: MeasurementType | None = None
    reference_point: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)


class WaterLevelRead(ReadBase):
    site_id: uuid.UUID
    borehole_id: uuid.UUID | None
    measurement_datetime: datetime
    depth_to_water: float
    depth_unit: DepthUnit
    measurement_method: MeasurementMethod
    measurement_type: MeasurementType
    reference_point: str | None
    notes: str | None
    qa_status: QAStatus


# --- Pump test ---

class PumpTestEntryPayload(CamelModel):
    elapsed_minutes: float = Field(ge=0)
    elapsed_seconds: int | None = Field(default=None, ge=0, le=59)
    depth_to_water: float
    drawdown: float | None = None
    discharge: float | None = Field(default=None, gt=0)
    discharge_unit: DischargeUnit | None = None
    notes: str | None = Field(default=None, max_length=200)


class PumpTestStepPayload(CamelModel):
    step_number: int = Field(ge=1)
    start_minutes: float = Field(ge=0)
    end_minutes: float = Field(ge=0)
    target_discharge: float = Field(gt=0)
    actual_discharge: float | None = None

    @model_validator(mode="after")
    def _window(self):
        if self.end_minutes <= self.start_minutes:
            raise ValueError("endMinutes must be greater than startMinutes")
        return self


class _PumpTestFields(SyncPayload):
    @model_validator(mode="after")
    def _chronology(self):
        if self.start_datetime and self.end_datetime and self.end_datetime < self.start_datetime:
            raise ValueError("endDatetime must not precede startDatetime")
        if self.steps:
            numbers = [step.step_number for step in self.steps]
            if len(numbers) != len(set(numbers)):
                raise ValueError("Step numbers must be unique within a pump test")
        return self


class PumpTestCreate(_PumpTestFields, RequiredSiteRef, BoreholeRef):
    test_type: PumpTestType
    test_name: str | None = Field(default=None, max_length=100)
    start_datetime: datetime
    end_datetime: datetime | None = None
    static_water_level: float | None = None
    pump_depth: float | None = Field(default=None, gt=0)
    pump_type: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=2000)
    entries: list[PumpTestEntryPayload] = Field(default_factory=list)
    steps: list[PumpTestStepPayload] = Field(default_factory=list)


class PumpTestUpdate(_PumpTestFields, BoreholeRef):
    not_nullable = ("test_type", "start_datetime")

    test_type: PumpTestType | None = None
    test_name: str | None = Field(default=None, max_length=100)
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    static_water_level: float | None = None
    pump_depth: float | None = Field(default=None, gt=0)
    pump_type: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=2000)
    # A supplied list replaces the stored children; omitted leaves them alone.
    entries: list[PumpTestEntryPayload] | None = None
    steps: list[PumpTestStepPayload] | None = None


class PumpTestEntryRead(PumpTestEntryPayload):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class PumpTestStepRead(PumpTestStepPayload):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class PumpTestRead(ReadBase):
    site_id: uuid.UUID
    borehole_id: uuid.UUID | None
    test_type: PumpTestType
    test_name: str | None
    start_datetime: datetime
    end_datetime: datetime | None
    static_water_level: float | None
    pump_depth: float | None
    pump_type: str | None
    notes: str | None
    qa_status: QAStatus
    entries: list[PumpTestEntryRead] = Field(default_factory=list)
    steps: list[PumpTestStepRead] = Field(default_factory=list)


# --- Water quality ---

TemperatureUnit = Literal["celsius", "fahrenheit"]
ConductivityUnit = Literal["uS/cm", "mS/cm"]
TdsUnit = Literal["mg/L", "ppm"]
OxygenUnit = Literal["mg/L", "%sat"]
TurbidityUnit = Literal["NTU", "FNU"]


class WaterQualityCreate(SyncPayload, RequiredSiteRef, BoreholeRef):
    sample_datetime: datetime
    sample_id: str | None = Field(default=None, max_length=50)
    temperature: float | None = Field(default=None, ge=-5, le=100)
    temperature_unit: TemperatureUnit = "celsius"
    ph: float | None = Field(default=None, ge=0, le=14)
    electrical_conductivity: float | None = Field(default=None, gt=0)
    ec_unit: ConductivityUnit = "uS/cm"
    total_dissolved_solids: float | None = Field(default=None, gt=0)
    tds_unit: TdsUnit = "mg/L"
    dissolved_oxygen: float | None = Field(default=None, ge=0)
    do_unit: OxygenUnit = "mg/L"
    turbidity: float | None = Field(default=None, ge=0)
    turbidity_unit: TurbidityUnit = "NTU"
    redox_potential: float | None = None
    instrument_id: str | None = Field(default=None, max_length=50)
    calibration_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class WaterQualityUpdate(SyncPayload, BoreholeRef):
    not_nullable = (
        "sample_datetime",
        "temperature_unit",
        "ec_unit",
        "tds_unit",
        "do_unit",
        "turbidity_unit",
    )

    sample_datetime: datetime | None = None
    sample_id: str | None = Field(default=None, max_length=50)
    temperature: float | None = Field(default=None, ge=-5, le=100)
    temperature_unit: TemperatureUnit | None = None
    ph: float | None = Field(default=None, ge=0, le=14)
    electrical_conductivity: float | None = Field(default=None, gt=0)
    ec_unit: ConductivityUnit | None = None
    total_dissolved_solids: float | None = Field(default=None, gt=0)
    tds_unit: TdsUnit | None = None
    dissolved_oxygen: float | None = Field(default=None, ge=0)
    do_unit: OxygenUnit | None = None
    turbidity: float | None = Field(default=None, ge=0)
    turbidity_unit: TurbidityUnit | None = None
    redox_potential: float | None = None
    instrument_id: str | None = Field(default=None, max_length=50)
    calibration_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class WaterQualityRead(ReadBase):
    site_id: uuid.UUID
    borehole_id: uuid.UUID | None
    sample_datetime: datetime
    sample_id: str | None
    temperature: float | None
    temperature_unit: str
    ph: float | None
    electrical_conductivity: float | None
    ec_unit: str
    total_dissolved_solids: float | None
    tds_unit: str
    dissolved_oxygen: float | None
    do_unit: str
    turbidity: float | None
    turbidity_unit: str
    redox_potential: float | None
    instrument_id: str | None
    calibration_date: datetime | None
    notes: str | None
    qa_status: QAStatus
