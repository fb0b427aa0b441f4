"""Base model mixins: UUID primary key, timestamps, and offline-sync identity."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from aquapack.database import Base
from aquapack.models.enums import SyncStatus

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class TimestampMixin:
    """Adds created_at and updated_at columns.

    ``updated_at`` is stamped by the sync engine from its injected clock, not
    by the database, so it has no ``onupdate``.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class UUIDPrimaryKeyMixin:
    """Adds a UUID v4 primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )


class SyncIdentityMixin:
    """Client identity of a record captured offline.

    ``(device_id, local_id)`` is unique per table; each tracked table adds the
    constraint in its ``__table_args__``.
    """

    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    local_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sync_status: Mapped[SyncStatus] = mapped_column(
        default=SyncStatus.SYNCED,
        nullable=False,
    )

    @declared_attr
    def created_by(cls) -> Mapped[uuid.UUID | None]:
        return mapped_column(Uuid, ForeignKey("user.id"), nullable=True)


class BaseModel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """UUID PK plus timestamps. Use for most entities."""

    __abstract__ = True


class TrackedModel(SyncIdentityMixin, BaseModel):
    """Base for every entity kind the sync engine pushes and pulls."""

    __abstract__ = True
