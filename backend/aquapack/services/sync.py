"""Offline sync service: push processing and pull aggregation for field devices."""

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.config import settings
from aquapack.core.clock import Clock, ensure_utc
from aquapack.core.context import CallerContext
from aquapack.core.exceptions import EntityProcessingError
from aquapack.models.enums import ConflictReason, SyncAction
from aquapack.schemas.sync import (
    ConflictResolutionRequest,
    ConflictResolutionResponse,
    SyncConflictEntry,
    SyncEntityMutation,
    SyncEntityOutcome,
    SyncPullRequest,
    SyncPullResponse,
    SyncPushRequest,
    SyncPushResponse,
    SyncStatusResponse,
)
from aquapack.services.conflicts import ConflictDetector, ConflictRecord, ConflictResolver
from aquapack.services.entities import HANDLERS, EntityHandler, get_handler
from aquapack.services.identity import IdentityMap
from aquapack.services.sync_log import SyncAuditLog

logger = logging.getLogger(__name__)


class SyncService:
    def __init__(self, db: AsyncSession, clock: Clock):
        self.db = db
        self.clock = clock
        self.identity = IdentityMap(db)
        self.detector = ConflictDetector()
        self.audit_log = SyncAuditLog(db, clock)

    async def push(
        self,
        request: SyncPushRequest,
        caller: CallerContext,
    ) -> SyncPushResponse:
        """Apply a batch of device mutations, one independently committed entity at a time.

        Every submitted mutation lands in exactly one of created, updated or
        conflicts. A failure on one mutation is reported as a conflict entry
        with reason PROCESSING_ERROR and does not affect the others.
        """
        response = SyncPushResponse()

        for mutation in request.entities:
            try:
                bucket, item = await self._process_mutation(mutation, request.device_id, caller)
                await self.db.commit()
            except Exception as exc:
                await self.db.rollback()
                logger.warning(
                    "Failed to process %s %s from device %s: %s",
                    mutation.entity_type.value,
                    mutation.local_id,
                    request.device_id,
                    exc,
                )
                bucket = "conflicts"
                item = ConflictRecord.from_error(
                    mutation.local_id, mutation.entity_type, exc, client_version=mutation.data,
                ).to_entry()
            getattr(response, bucket).append(item)

        failures = sum(1 for c in response.conflicts if c.reason is ConflictReason.PROCESSING_ERROR)
        logger.info(
            "Push from device %s: %d created, %d updated, %d conflicts (%d errors)",
            request.device_id,
            len(response.created),
            len(response.updated),
            len(response.conflicts),
            failures,
        )
        await self.audit_log.record(
            caller=caller,
            action=SyncAction.PUSH,
            device_id=request.device_id,
            entity_count=len(request.entities),
            success_count=len(response.created) + len(response.updated),
            failure_count=len(response.conflicts),
        )
        await self.db.commit()
        return response

    async def _process_mutation(
        self,
        mutation: SyncEntityMutation,
        device_id: str,
        caller: CallerContext,
    ) -> tuple[str, SyncEntityOutcome | SyncConflictEntry]:
        """Resolve identity, check for conflicts, and write one mutation.

        Returns the response bucket name and the item to put in it.
        """
        handler = get_handler(mutation.entity_type, self.db)
        existing = await self.identity.resolve(device_id, mutation.local_id, mutation.entity_type)

        if existing is None:
            payload = handler.parse_create(mutation.data)
            try:
                entity = await handler.create(
                    payload,
                    device_id=device_id,
                    local_id=mutation.local_id,
                    created_by=caller.user_id,
                    now=self.clock.now(),
                )
            except IntegrityError:
                # A concurrent retry of the same mutation may have created it first.
                await self.db.rollback()
                existing = await self.identity.resolve(
                    device_id, mutation.local_id, mutation.entity_type,
                )
                if existing is None:
                    raise
                logger.info(
                    "Concurrent create of %s %s from device %s; treating as update",
                    mutation.entity_type.value, mutation.local_id, device_id,
                )
            else:
                await self._require_access(handler, entity, caller)
                return "created", self._outcome(handler, mutation, entity)

        await self._require_access(handler, existing, caller)
        payload = handler.parse_update(mutation.data)
        evaluation = self.detector.evaluate(existing, payload)
        if evaluation.is_conflict:
            logger.info(
                "Stale %s %s from device %s: server %s > client %s",
                mutation.entity_type.value,
                mutation.local_id,
                device_id,
                evaluation.server_updated_at.isoformat(),
                evaluation.client_updated_at.isoformat(),
            )
            record = ConflictRecord(
                local_id=mutation.local_id,
                entity_kind=mutation.entity_type,
                reason=ConflictReason.STALE_WRITE,
                server_id=existing.id,
                server_version=handler.serialize(existing),
                client_version=mutation.data,
            )
            return "conflicts", record.to_entry()

        entity = await handler.update(existing, payload, device_id=device_id, now=self.clock.now())
        return "updated", self._outcome(handler, mutation, entity)

    @staticmethod
    async def _require_access(handler: EntityHandler, entity, caller: CallerContext) -> None:
        project_id = await handler.project_id_of(entity)
        if not caller.can_access(project_id):
            raise EntityProcessingError(
                f"Not assigned to project {project_id} owning this {handler.kind.value}"
            )

    @staticmethod
    def _outcome(handler: EntityHandler, mutation: SyncEntityMutation, entity) -> SyncEntityOutcome:
        return SyncEntityOutcome(
            local_id=mutation.local_id,
            entity_type=mutation.entity_type,
            server_id=entity.id,
            entity=handler.serialize(entity),
        )

    async def pull(
        self,
        request: SyncPullRequest,
        caller: CallerContext,
    ) -> SyncPullResponse:
        """Everything in the caller's projects changed after the checkpoint.

        The returned timestamp is the upper bound of this snapshot and the
        checkpoint for the next pull, so consecutive pulls neither overlap nor
        leave gaps. It trails the clock by ``SYNC_PULL_LAG_SECONDS``: a push
        that stamped its rows just before this pull but commits just after it
        is still newer than the checkpoint.
        """
        timestamp = self.clock.now() - timedelta(seconds=settings.SYNC_PULL_LAG_SECONDS)
        since = ensure_utc(request.last_sync_timestamp)
        project_ids = caller.accessible_projects(request.project_ids)

        groups: dict[str, list[dict]] = {}
        for handler_cls in HANDLERS.values():
            handler = handler_cls(self.db)
            rows = await handler.changed_since(project_ids, since, timestamp) if project_ids else []
            groups[handler.response_key] = [handler.serialize(row) for row in rows]

        total = sum(len(rows) for rows in groups.values())
        await self.audit_log.record(
            caller=caller,
            action=SyncAction.PULL,
            device_id=request.device_id,
            entity_count=total,
            success_count=total,
            failure_count=0,
        )
        return SyncPullResponse(timestamp=timestamp, **groups)

    async def resolve_conflict(
        self,
        request: ConflictResolutionRequest,
        caller: CallerContext,
    ) -> ConflictResolutionResponse:
        resolver = ConflictResolver(self.db, self.clock)
        return await resolver.resolve(
            caller,
            request.entity_type,
            request.entity_id,
            request.resolution,
            merged_data=request.merged_data,
            local_data=request.local_data,
            device_id=request.device_id,
        )

    async def get_sync_status(self, caller: CallerContext) -> SyncStatusResponse:
        """Sync status for the user's recent activity."""
        return await self.audit_log.status(caller.user_id, settings.SYNC_STATUS_WINDOW)
