"""Append-only sync audit log."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from aquapack.models.base import Base, UUIDPrimaryKeyMixin
from aquapack.models.enums import SyncAction


class SyncLog(UUIDPrimaryKeyMixin, Base):
    """One row per push or pull call. Never updated."""

    __tablename__ = "sync_log"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user.id"), nullable=False
    )
    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("organization.id"), nullable=True
    )
    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    action: Mapped[SyncAction] = mapped_column(nullable=False)
    entity_count: Mapped[int] = mapped_column(Integer, nullable=False)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False)
    failure_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_sync_log_user_created", "user_id", "created_at"),
        Index("ix_sync_log_device", "device_id"),
    )
