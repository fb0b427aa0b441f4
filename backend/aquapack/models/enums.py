"""All enum types for the AquaPack data model."""

import enum


# --- Users ---

class UserRole(str, enum.Enum):
    FIELD_USER = "FIELD_USER"
    TEAM_LEAD = "TEAM_LEAD"
    DATA_MANAGER = "DATA_MANAGER"
    ADMIN = "ADMIN"


# --- Sync ---

class EntityKind(str, enum.Enum):
    SITE = "site"
    BOREHOLE = "borehole"
    WATER_LEVEL = "waterLevel"
    PUMP_TEST = "pumpTest"
    WATER_QUALITY = "waterQuality"


class SyncStatus(str, enum.Enum):
    """Shared with the device store, where unsent edits sit as PENDING,
    rejected ones as CONFLICT or ERROR. The server only ever writes SYNCED.
    """

    SYNCED = "SYNCED"
    PENDING = "PENDING"
    CONFLICT = "CONFLICT"
    ERROR = "ERROR"


class SyncAction(str, enum.Enum):
    PUSH = "PUSH"
    PULL = "PULL"


class ConflictResolution(str, enum.Enum):
    LOCAL_WINS = "LOCAL_WINS"
    SERVER_WINS = "SERVER_WINS"
    MERGED = "MERGED"


class ConflictReason(str, enum.Enum):
    STALE_WRITE = "STALE_WRITE"
    PROCESSING_ERROR = "PROCESSING_ERROR"


# --- Field records ---

class QAStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    FLAGGED = "FLAGGED"
    REJECTED = "REJECTED"


class WellType(str, enum.Enum):
    BOREHOLE = "BOREHOLE"
    DUG_WELL = "DUG_WELL"
    SPRING = "SPRING"
    PIEZOMETER = "PIEZOMETER"


class PumpTestType(str, enum.Enum):
    STEP_TEST = "STEP_TEST"
    CONSTANT_RATE = "CONSTANT_RATE"
    RECOVERY = "RECOVERY"
    SLUG_TEST = "SLUG_TEST"


class MeasurementMethod(str, enum.Enum):
    MANUAL_TAPE = "MANUAL_TAPE"
    PRESSURE_TRANSDUCER = "PRESSURE_TRANSDUCER"
    SOUNDER = "SOUNDER"
    OTHER = "OTHER"


class MeasurementType(str, enum.Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    RECOVERY = "recovery"


class DepthUnit(str, enum.Enum):
    METERS = "meters"
    FEET = "feet"


class DischargeUnit(str, enum.Enum):
    LITRES_PER_SECOND = "l/s"
    CUBIC_METRES_PER_HOUR = "m3/h"
    GALLONS_PER_MINUTE = "gpm"
