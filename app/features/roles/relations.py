"""
Lookup of management relations between organizations.
"""
from typing import Optional

from app.features.roles.lattice import Role
from app.features.roles.repository import RoleStore
from app.features.roles.schemas import RelationRecord


class RelationshipResolver:
    """
    Read-only relation lookup, memoised for the lifetime of the resolver.

    Create one per rebuild so a rebuild sees a single snapshot of the
    relations it asked for.
    """

    def __init__(self, store: RoleStore):
        self._store = store
        self._cache: dict[tuple[str, str], Optional[RelationRecord]] = {}

    async def resolve(self, parent_id: str, child_id: str) -> Optional[RelationRecord]:
        """Return the relation from `parent_id` to `child_id`, or None if there is none."""
        key = (parent_id, child_id)
        if key not in self._cache:
            self._cache[key] = await self._store.resolve_relation(parent_id, child_id)
        return self._cache[key]


def oversight_role(relation: Optional[RelationRecord]) -> Role:
    """Role the managing organization's users get in the managed organization."""
    if relation is None:
        return Role.NONE
    return Role.ADMIN if relation.is_admin_relation else Role.VIEWER
