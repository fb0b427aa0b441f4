"""Authenticated caller as seen by the sync engine."""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from aquapack.models.enums import UserRole


@dataclass(frozen=True)
class CallerContext:
    user_id: uuid.UUID
    organization_id: uuid.UUID | None
    project_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    role: UserRole | None = None

    def accessible_projects(
        self, requested: Iterable[uuid.UUID] | None = None
    ) -> frozenset[uuid.UUID]:
        """Projects the caller may read: the requested ones they are assigned to, or all assignments."""
        if requested is None:
            return self.project_ids
        return self.project_ids.intersection(requested)

    def can_access(self, project_id: uuid.UUID | None) -> bool:
        return project_id is not None and project_id in self.project_ids
