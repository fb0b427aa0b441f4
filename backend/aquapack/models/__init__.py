"""All AquaPack database models.

Import all models here so Alembic and SQLAlchemy can discover them.
"""

from aquapack.models.base import Base, BaseModel, TrackedModel  # noqa: F401

# Organization & access
from aquapack.models.organization import (  # noqa: F401
    Organization,
    Project,
    ProjectAssignment,
    User,
)

# Field records
from aquapack.models.hydro import (  # noqa: F401
    Borehole,
    PumpTest,
    PumpTestEntry,
    PumpTestStep,
    Site,
    WaterLevelMeasurement,
    WaterQualityReading,
)

# Sync
from aquapack.models.sync import SyncLog  # noqa: F401
