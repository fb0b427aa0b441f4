"""Pydantic schemas for the offline sync endpoints."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import Field

from aquapack.config import settings
from aquapack.models.enums import ConflictReason, EntityKind
from aquapack.schemas import CamelModel


class SyncEntityMutation(CamelModel):
    local_id: str | None = Field(
        default=None,
        max_length=100,
        description="Client-generated ID, unique per device",
    )
    entity_type: EntityKind
    # Checked per entity so one malformed item cannot sink the batch.
    data: Any = Field(
        default_factory=dict,
        description="Domain fields of the entity kind plus the updatedAt it was based on",
    )


class SyncPushRequest(CamelModel):
    device_id: str = Field(min_length=1, max_length=100)
    entities: list[SyncEntityMutation] = Field(max_length=settings.SYNC_MAX_BATCH_SIZE)


class SyncPullRequest(CamelModel):
    last_sync_timestamp: datetime | None = Field(
        default=None,
        description="Checkpoint returned by the previous pull",
    )
    project_ids: list[uuid.UUID] | None = Field(
        default=None,
        description="Restrict the pull to these projects (intersected with assignments)",
    )
    device_id: str | None = Field(default=None, max_length=100)


class ConflictResolutionRequest(CamelModel):
    entity_type: EntityKind
    entity_id: uuid.UUID
    # Validated by the resolver so an unknown strategy gets its own error code.
    resolution: str = Field(min_length=1, max_length=20)
    merged_data: dict | None = None
    local_data: dict | None = Field(
        default=None,
        description="The client payload to apply for LOCAL_WINS",
    )
    device_id: str | None = Field(
        default=None,
        max_length=100,
        description="Needed only when the payload names parents by localId",
    )


# --- Responses ---

class SyncEntityOutcome(CamelModel):
    local_id: str | None
    entity_type: EntityKind
    server_id: uuid.UUID
    entity: dict


class SyncConflictEntry(CamelModel):
    local_id: str | None
    entity_type: EntityKind
    server_id: uuid.UUID | None = None
    reason: ConflictReason
    server_version: dict | None = None
    client_version: Any = None
    error: str | None = None


class SyncPushResponse(CamelModel):
    created: list[SyncEntityOutcome] = Field(default_factory=list)
    updated: list[SyncEntityOutcome] = Field(default_factory=list)
    conflicts: list[SyncConflictEntry] = Field(default_factory=list)


class SyncPullResponse(CamelModel):
    timestamp: datetime
    sites: list[dict] = Field(default_factory=list)
    boreholes: list[dict] = Field(default_factory=list)
    water_levels: list[dict] = Field(default_factory=list)
    pump_tests: list[dict] = Field(default_factory=list)
    water_quality: list[dict] = Field(default_factory=list)


class ConflictResolutionResponse(CamelModel):
    entity_type: EntityKind
    entity_id: uuid.UUID
    resolution: str
    applied: bool
    entity: dict


class SyncStatusResponse(CamelModel):
    last_sync: datetime | None = None
    last_push: datetime | None = None
    last_pull: datetime | None = None
    recent_synced: int = 0
    recent_failures: int = 0
