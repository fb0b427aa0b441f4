"""Conflict detection for pushed mutations and explicit conflict resolution.

Policy is last-writer-wins through comparison, not blind overwrite: a
mutation based on an older ``updated_at`` than the server holds is reported
back as a conflict and left unapplied until the caller resolves it.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.core.clock import EPOCH, Clock, ensure_utc
from aquapack.core.context import CallerContext
from aquapack.core.exceptions import (
    EntityNotFoundError,
    EntityProcessingError,
    SyncValidationError,
    UnknownResolutionError,
)
from aquapack.models.base import TrackedModel
from aquapack.models.enums import ConflictReason, ConflictResolution, EntityKind
from aquapack.schemas.hydro import SyncPayload
from aquapack.schemas.sync import ConflictResolutionResponse, SyncConflictEntry
from aquapack.services.entities import format_validation_error, get_handler

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    APPLY_CLEAN = "apply_clean"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Evaluation:
    outcome: Outcome
    server_updated_at: datetime | None
    client_updated_at: datetime

    @property
    def is_conflict(self) -> bool:
        return self.outcome is Outcome.CONFLICT


class ConflictDetector:
    def evaluate(
        self,
        existing: TrackedModel | None,
        incoming: SyncPayload,
    ) -> Evaluation:
        """Conflict only when the server copy is strictly newer than the client's base."""
        client_updated_at = ensure_utc(incoming.updated_at) or EPOCH
        if existing is None:
            return Evaluation(Outcome.APPLY_CLEAN, None, client_updated_at)

        server_updated_at = ensure_utc(existing.updated_at)
        if server_updated_at is not None and server_updated_at > client_updated_at:
            return Evaluation(Outcome.CONFLICT, server_updated_at, client_updated_at)
        return Evaluation(Outcome.APPLY_CLEAN, server_updated_at, client_updated_at)


@dataclass
class ConflictRecord:
    """Lives only for the push call that produced it."""

    local_id: str | None
    entity_kind: EntityKind
    reason: ConflictReason
    server_id: uuid.UUID | None = None
    server_version: dict | None = None
    client_version: Any = None
    error: str | None = None

    @classmethod
    def from_error(
        cls,
        local_id: str | None,
        entity_kind: EntityKind,
        error: Exception,
        client_version: Any = None,
    ) -> "ConflictRecord":
        # Anything other than a processing error may carry storage internals.
        if isinstance(error, EntityProcessingError):
            message = error.message
        else:
            message = "The server could not apply this change"
        return cls(
            local_id=local_id,
            entity_kind=entity_kind,
            reason=ConflictReason.PROCESSING_ERROR,
            client_version=client_version,
            error=message,
        )

    def to_entry(self) -> SyncConflictEntry:
        return SyncConflictEntry(
            local_id=self.local_id,
            entity_type=self.entity_kind,
            server_id=self.server_id,
            reason=self.reason,
            server_version=self.server_version,
            client_version=self.client_version,
            error=self.error,
        )


class ConflictResolver:
    """Applies an explicit decision to a conflict reported by an earlier push.

    Conflicts are not stored server-side, so the caller resubmits the payload
    it wants applied (``localData`` or ``mergedData``) together with the
    decision. ``SERVER_WINS`` changes nothing and may be repeated freely.
    """

    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self.db = db
        self.clock = clock

    @staticmethod
    def parse_resolution(value: str) -> ConflictResolution:
        try:
            return ConflictResolution(value)
        except ValueError:
            allowed = ", ".join(r.value for r in ConflictResolution)
            raise UnknownResolutionError(f"resolution must be one of {allowed}") from None

    async def resolve(
        self,
        caller: CallerContext,
        entity_kind: EntityKind,
        entity_id: uuid.UUID,
        resolution: str,
        *,
        merged_data: dict | None = None,
        local_data: dict | None = None,
        device_id: str | None = None,
    ) -> ConflictResolutionResponse:
        strategy = self.parse_resolution(resolution)
        handler = get_handler(entity_kind, self.db)

        payload = None
        if strategy is not ConflictResolution.SERVER_WINS:
            data = merged_data if strategy is ConflictResolution.MERGED else local_data
            if data is None:
                field = "mergedData" if strategy is ConflictResolution.MERGED else "localData"
                raise SyncValidationError(f"{field} is required for {strategy.value}")
            try:
                payload = handler.update_schema.model_validate(data)
            except ValidationError as exc:
                raise SyncValidationError(
                    f"Invalid {entity_kind.value} data: {format_validation_error(exc)}"
                ) from exc

        entity = await handler.get(entity_id)
        if entity is None or not caller.can_access(await handler.project_id_of(entity)):
            raise EntityNotFoundError(f"{entity_kind.value} {entity_id} not found")

        if payload is None:
            logger.info(
                "Conflict on %s %s resolved SERVER_WINS by user %s",
                entity_kind.value, entity_id, caller.user_id,
            )
            return ConflictResolutionResponse(
                entity_type=entity_kind,
                entity_id=entity.id,
                resolution=strategy.value,
                applied=False,
                entity=handler.serialize(entity),
            )

        try:
            await handler.update(entity, payload, device_id=device_id, now=self.clock.now())
        except EntityProcessingError as exc:
            raise SyncValidationError(exc.message) from exc

        logger.info(
            "Conflict on %s %s resolved %s by user %s",
            entity_kind.value, entity_id, strategy.value, caller.user_id,
        )
        return ConflictResolutionResponse(
            entity_type=entity_kind,
            entity_id=entity.id,
            resolution=strategy.value,
            applied=True,
            entity=handler.serialize(entity),
        )
