"""Per-kind storage adapters for the tracked entity kinds.

The push processor, pull aggregator and conflict resolver only talk to
``EntityHandler``; each kind plugs in its model, payload schemas and the few
places where it differs (eager loads, parent references, nested children,
how it reaches its owning project).
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError
from sqlalchemy import Select, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from aquapack.core.clock import ensure_utc
from aquapack.core.exceptions import EntityProcessingError
from aquapack.models.base import TrackedModel
from aquapack.models.enums import EntityKind, SyncStatus
from aquapack.models.hydro import (
    Borehole,
    PumpTest,
    PumpTestEntry,
    PumpTestStep,
    Site,
    WaterLevelMeasurement,
    WaterQualityReading,
)
from aquapack.schemas.hydro import (
    NON_COLUMN_FIELDS,
    BoreholeCreate,
    BoreholeRead,
    BoreholeUpdate,
    ProjectSummary,
    PumpTestCreate,
    PumpTestRead,
    PumpTestUpdate,
    SiteCreate,
    SiteRead,
    SiteUpdate,
    SyncPayload,
    WaterLevelCreate,
    WaterLevelRead,
    WaterLevelUpdate,
    WaterQualityCreate,
    WaterQualityRead,
    WaterQualityUpdate,
)

logger = logging.getLogger(__name__)


def format_validation_error(exc: ValidationError) -> str:
    """Collapse pydantic errors into one line: ``field: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "data"
        parts.append(f"{loc}: {err.get('msg', 'Invalid value')}")
    return "; ".join(parts)


class EntityHandler:
    kind: EntityKind
    model: type[TrackedModel]
    create_schema: type[SyncPayload]
    update_schema: type[SyncPayload]
    read_schema: type[PydanticModel]
    # Field name on the pull response.
    response_key: str
    # Payload fields stored in JSON columns.
    json_fields: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Payloads ---

    def parse_create(self, data: Any) -> SyncPayload:
        return self._parse(self.create_schema, data)

    def parse_update(self, data: Any) -> SyncPayload:
        return self._parse(self.update_schema, data)

    def _parse(self, schema: type[SyncPayload], data: Any) -> SyncPayload:
        if not isinstance(data, dict):
            raise EntityProcessingError(
                f"Invalid {self.kind.value} data: expected an object, got {type(data).__name__}"
            )
        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            raise EntityProcessingError(
                f"Invalid {self.kind.value} data: {format_validation_error(exc)}"
            ) from exc

    def column_values(self, payload: SyncPayload, *, partial: bool) -> dict:
        values = payload.model_dump(exclude_unset=partial, exclude=NON_COLUMN_FIELDS)
        for name in self.json_fields:
            if values.get(name) is not None:
                values[name] = jsonable_encoder(getattr(payload, name), by_alias=True)
        return values

    # --- Queries ---

    def load_options(self) -> tuple:
        return ()

    def base_query(self) -> Select:
        return select(self.model).options(*self.load_options())

    async def find_by_device_local_id(
        self, device_id: str, local_id: str
    ) -> TrackedModel | None:
        result = await self.db.execute(
            self.base_query().where(
                self.model.device_id == device_id,
                self.model.local_id == local_id,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, entity_id: uuid.UUID) -> TrackedModel | None:
        result = await self.db.execute(
            self.base_query().where(self.model.id == entity_id)
        )
        return result.scalar_one_or_none()

    def scope_to_projects(self, query: Select, project_ids: Iterable[uuid.UUID]) -> Select:
        return query.join(Site, self.model.site_id == Site.id).where(
            Site.project_id.in_(list(project_ids))
        )

    async def changed_since(
        self,
        project_ids: Iterable[uuid.UUID],
        since: datetime | None,
        until: datetime,
    ) -> list[TrackedModel]:
        """Entities in the given projects with ``since < updated_at <= until``."""
        query = self.scope_to_projects(self.base_query(), project_ids).where(
            self.model.updated_at <= until,
        )
        if since is not None:
            query = query.where(self.model.updated_at > since)
        query = query.order_by(self.model.updated_at.asc(), self.model.id.asc())
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def project_id_of(self, entity: TrackedModel) -> uuid.UUID | None:
        result = await self.db.execute(
            select(Site.project_id).where(Site.id == entity.site_id)
        )
        return result.scalar_one_or_none()

    # --- Writes ---

    async def resolve_references(
        self, payload: SyncPayload, device_id: str | None
    ) -> dict:
        """Turn ``siteLocalId``/``boreholeLocalId`` into server ids for this device."""
        resolved: dict = {}
        for id_field, local_field, parent in (
            ("site_id", "site_local_id", SiteHandler),
            ("borehole_id", "borehole_local_id", BoreholeHandler),
        ):
            local_ref = getattr(payload, local_field, None)
            if not local_ref or getattr(payload, id_field, None) is not None:
                continue
            if not device_id:
                raise EntityProcessingError(
                    f"{local_field} requires a deviceId to resolve"
                )
            parent_entity = await parent(self.db).find_by_device_local_id(device_id, local_ref)
            if parent_entity is None:
                raise EntityProcessingError(
                    f"Unknown {parent.kind.value} localId {local_ref!r} for device {device_id!r}"
                )
            resolved[id_field] = parent_entity.id
        return resolved

    async def check_borehole(
        self, borehole_id: uuid.UUID | None, site_id: uuid.UUID | None
    ) -> None:
        """A borehole parent must sit on the record's own site."""
        if borehole_id is None:
            return
        borehole = await self.db.get(Borehole, borehole_id)
        if borehole is None or borehole.site_id != site_id:
            raise EntityProcessingError(
                f"Borehole {borehole_id} does not belong to site {site_id}"
            )

    async def create(
        self,
        payload: SyncPayload,
        *,
        device_id: str | None,
        local_id: str | None,
        created_by: uuid.UUID | None,
        now: datetime,
    ) -> TrackedModel:
        values = self.column_values(payload, partial=False)
        values.update(await self.resolve_references(payload, device_id))
        await self.check_borehole(values.get("borehole_id"), values.get("site_id"))
        entity = self.model(
            id=uuid.uuid4(),
            device_id=device_id,
            local_id=local_id,
            created_by=created_by,
            sync_status=SyncStatus.SYNCED,
            created_at=now,
            updated_at=now,
            **values,
        )
        self.apply_children(entity, payload)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(
        self,
        entity: TrackedModel,
        payload: SyncPayload,
        *,
        device_id: str | None,
        now: datetime,
    ) -> TrackedModel:
        values = self.column_values(payload, partial=True)
        values.update(await self.resolve_references(payload, device_id))
        if values.get("borehole_id") is not None:
            await self.check_borehole(values["borehole_id"], entity.site_id)
        for name, value in values.items():
            setattr(entity, name, value)
        self.apply_children(entity, payload)
        previous = ensure_utc(entity.updated_at)
        entity.updated_at = max(now, previous) if previous else now
        entity.sync_status = SyncStatus.SYNCED
        await self.db.flush()
        return entity

    def apply_children(self, entity: TrackedModel, payload: SyncPayload) -> None:
        """Hook for kinds with nested records."""

    # --- Output ---

    def serialize(self, entity: TrackedModel) -> dict:
        return self.read_schema.model_validate(entity).model_dump(mode="json", by_alias=True)


class SiteHandler(EntityHandler):
    kind = EntityKind.SITE
    model = Site
    create_schema = SiteCreate
    update_schema = SiteUpdate
    read_schema = SiteRead
    response_key = "sites"
    json_fields = ("location",)

    def load_options(self) -> tuple:
        return (selectinload(Site.project),)

    def scope_to_projects(self, query: Select, project_ids: Iterable[uuid.UUID]) -> Select:
        return query.where(Site.project_id.in_(list(project_ids)))

    async def project_id_of(self, entity: TrackedModel) -> uuid.UUID | None:
        return entity.project_id

    async def create(
        self,
        payload: SyncPayload,
        *,
        device_id: str | None,
        local_id: str | None,
        created_by: uuid.UUID | None,
        now: datetime,
    ) -> TrackedModel:
        entity = await super().create(
            payload, device_id=device_id, local_id=local_id, created_by=created_by, now=now,
        )
        # Created sites carry the same project summary as pulled ones.
        await self.db.refresh(entity, attribute_names=["project"])
        return entity

    def serialize(self, entity: TrackedModel) -> dict:
        data = super().serialize(entity)
        if "project" not in inspect(entity).unloaded and entity.project is not None:
            data["project"] = ProjectSummary.model_validate(entity.project).model_dump(
                mode="json", by_alias=True
            )
        return data


class BoreholeHandler(EntityHandler):
    kind = EntityKind.BOREHOLE
    model = Borehole
    create_schema = BoreholeCreate
    update_schema = BoreholeUpdate
    read_schema = BoreholeRead
    response_key = "boreholes"
    json_fields = ("casing_details", "screen_intervals", "lithology_log")


class WaterLevelHandler(EntityHandler):
    kind = EntityKind.WATER_LEVEL
    model = WaterLevelMeasurement
    create_schema = WaterLevelCreate
    update_schema = WaterLevelUpdate
    read_schema = WaterLevelRead
    response_key = "water_levels"


class PumpTestHandler(EntityHandler):
    kind = EntityKind.PUMP_TEST
    model = PumpTest
    create_schema = PumpTestCreate
    update_schema = PumpTestUpdate
    read_schema = PumpTestRead
    response_key = "pump_tests"

    def load_options(self) -> tuple:
        return (selectinload(PumpTest.entries), selectinload(PumpTest.steps))

    async def update(
        self,
        entity: TrackedModel,
        payload: SyncPayload,
        *,
        device_id: str | None,
        now: datetime,
    ) -> TrackedModel:
        if payload.steps is not None and entity.steps:
            # Replacement steps reuse step numbers; the old rows must be gone first.
            entity.steps = []
            await self.db.flush()
        return await super().update(entity, payload, device_id=device_id, now=now)

    def apply_children(self, entity: TrackedModel, payload: SyncPayload) -> None:
        if payload.entries is not None:
            entity.entries = [
                PumpTestEntry(id=uuid.uuid4(), **entry.model_dump())
                for entry in payload.entries
            ]
        if payload.steps is not None:
            entity.steps = [
                PumpTestStep(id=uuid.uuid4(), **step.model_dump())
                for step in payload.steps
            ]


class WaterQualityHandler(EntityHandler):
    kind = EntityKind.WATER_QUALITY
    model = WaterQualityReading
    create_schema = WaterQualityCreate
    update_schema = WaterQualityUpdate
    read_schema = WaterQualityRead
    response_key = "water_quality"


HANDLERS: dict[EntityKind, type[EntityHandler]] = {
    handler.kind: handler
    for handler in (
        SiteHandler,
        BoreholeHandler,
        WaterLevelHandler,
        PumpTestHandler,
        WaterQualityHandler,
    )
}


def get_handler(kind: EntityKind, db: AsyncSession) -> EntityHandler:
    return HANDLERS[kind](db)
