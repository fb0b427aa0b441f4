"""Offline sync endpoints for the field app."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.core.clock import Clock, get_clock
from aquapack.core.context import CallerContext
from aquapack.core.deps import require_caller
from aquapack.database import get_db
from aquapack.models.enums import UserRole
from aquapack.schemas.sync import (
    ConflictResolutionRequest,
    SyncPullRequest,
    SyncPushRequest,
)
from aquapack.services.sync import SyncService

router = APIRouter(prefix="/sync", tags=["sync"])

SYNC_ROLES = (
    UserRole.FIELD_USER,
    UserRole.TEAM_LEAD,
    UserRole.DATA_MANAGER,
    UserRole.ADMIN,
)


@router.post("/push", response_model=dict)
async def sync_push(
    data: SyncPushRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    caller: Annotated[CallerContext, Depends(require_caller(*SYNC_ROLES))],
):
    """Receive a batch of offline mutations and apply them to the server.

    Mutations are processed in submission order and committed one by one.
    Every submitted item comes back in exactly one of ``created``,
    ``updated`` or ``conflicts``; a malformed item never fails the batch.
    """
    svc = SyncService(db, clock)
    result = await svc.push(data, caller)
    return {
        "success": True,
        "data": result.model_dump(mode="json", by_alias=True),
    }


@router.post("/pull", response_model=dict)
async def sync_pull(
    data: SyncPullRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    caller: Annotated[CallerContext, Depends(require_caller(*SYNC_ROLES))],
):
    """Pull everything changed since ``lastSyncTimestamp`` in the caller's projects.

    Store the returned ``timestamp`` and send it as the next checkpoint.
    """
    svc = SyncService(db, clock)
    result = await svc.pull(data, caller)
    return {
        "success": True,
        "data": result.model_dump(mode="json", by_alias=True),
    }


@router.post("/resolve-conflict", response_model=dict)
async def sync_resolve_conflict(
    data: ConflictResolutionRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    caller: Annotated[CallerContext, Depends(require_caller(*SYNC_ROLES))],
):
    """Apply LOCAL_WINS, SERVER_WINS or MERGED to a conflict reported by a push."""
    svc = SyncService(db, clock)
    result = await svc.resolve_conflict(data, caller)
    return {
        "success": True,
        "data": result.model_dump(mode="json", by_alias=True),
    }


@router.get("/status", response_model=dict)
async def sync_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
    caller: Annotated[CallerContext, Depends(require_caller(*SYNC_ROLES))],
):
    """Get current sync status for the authenticated user."""
    svc = SyncService(db, clock)
    result = await svc.get_sync_status(caller)
    return {
        "success": True,
        "data": result.model_dump(mode="json", by_alias=True),
    }
