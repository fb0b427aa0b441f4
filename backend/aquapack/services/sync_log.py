"""Sync audit log: one immutable row per push or pull, used for diagnostics."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.core.clock import Clock, ensure_utc
from aquapack.core.context import CallerContext
from aquapack.models.enums import SyncAction
from aquapack.models.sync import SyncLog
from aquapack.schemas.sync import SyncStatusResponse

logger = logging.getLogger(__name__)


class SyncAuditLog:
    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self.db = db
        self.clock = clock

    async def record(
        self,
        *,
        caller: CallerContext,
        action: SyncAction,
        device_id: str | None,
        entity_count: int,
        success_count: int,
        failure_count: int,
    ) -> SyncLog:
        """Append a sync-log entry. Entries are never updated afterwards."""
        entry = SyncLog(
            id=uuid.uuid4(),
            user_id=caller.user_id,
            organization_id=caller.organization_id,
            device_id=device_id,
            action=action,
            entity_count=entity_count,
            success_count=success_count,
            failure_count=failure_count,
            created_at=self.clock.now(),
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info(
            "SYNC: user=%s device=%s action=%s total=%d ok=%d failed=%d",
            caller.user_id,
            device_id,
            action.value,
            entity_count,
            success_count,
            failure_count,
        )
        return entry

    async def recent(self, user_id: uuid.UUID, limit: int) -> list[SyncLog]:
        result = await self.db.execute(
            select(SyncLog)
            .where(SyncLog.user_id == user_id)
            .order_by(SyncLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def status(self, user_id: uuid.UUID, window: int) -> SyncStatusResponse:
        """Summarize the user's most recent ``window`` sync operations."""
        logs = await self.recent(user_id, window)
        summary = SyncStatusResponse()
        if not logs:
            return summary

        summary.last_sync = ensure_utc(logs[0].created_at)
        for log in logs:
            if log.action == SyncAction.PUSH and summary.last_push is None:
                summary.last_push = ensure_utc(log.created_at)
            if log.action == SyncAction.PULL and summary.last_pull is None:
                summary.last_pull = ensure_utc(log.created_at)
            summary.recent_synced += log.success_count
            summary.recent_failures += log.failure_count
        return summary
