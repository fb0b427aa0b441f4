"""Maps a device's local identifiers onto server-issued entity ids."""

from sqlalchemy.ext.asyncio import AsyncSession

from aquapack.models.base import TrackedModel
from aquapack.models.enums import EntityKind
from aquapack.services.entities import get_handler


class IdentityMap:
    """Read-only lookup of ``(device_id, local_id, kind)`` to an existing entity.

    Absence is a normal answer: without both a device id and a local id there
    is no prior identity to find and the mutation becomes a create.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(
        self,
        device_id: str | None,
        local_id: str | None,
        kind: EntityKind,
    ) -> TrackedModel | None:
        if not device_id or not local_id:
            return None
        return await get_handler(kind, self.db).find_by_device_local_id(device_id, local_id)
