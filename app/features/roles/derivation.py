"""
Derived role rebuild.

Rebuilds the (user, organization, role) table from legacy account data:

- Internal accounts get their role in the root council; root admins are
  root admin in every data owner and operator organization as well.
- External accounts get their role in the single organization they are
  linked to.
- Operator and manager accounts get their role in their (primary account's)
  home organization, and ADMIN or VIEWER in each linked organization their
  home organization manages, depending on the management relation.

Each account class is an independent pass emitting into one accumulator; the
result replaces the stored table in a single write.
"""
from collections import Counter
from typing import Dict, List, Optional, Set, Tuple

from app.core import config
from app.features.roles.lattice import AccountClass, OrganizationKind, Role
from app.features.roles.mapping import legacy_to_role
from app.features.roles.relations import RelationshipResolver, oversight_role
from app.features.roles.repository import RoleStore
from app.features.roles.schemas import (
    DerivedRoleGrant,
    DiagnosticReason,
    OrganizationRecord,
    RebuildDiagnostic,
    RebuildResult,
    UserRecord,
)
from app.utils import get_logger


log = get_logger(__name__)

# Organization kinds a root admin is implicitly root admin of
FAN_OUT_KINDS = (OrganizationKind.DATA_OWNER, OrganizationKind.OPERATOR)


class GrantAccumulator:
    """
    Collects derived grants, at most one per (user, organization).

    On a collision the higher role wins; on a tie the first grant is kept.
    """

    def __init__(self):
        self._grants: Dict[Tuple[str, str], DerivedRoleGrant] = {}
        self._account_classes: Dict[str, AccountClass] = {}

    def emit(
        self,
        user: UserRecord,
        organization_id: str,
        role: Role,
        is_home_organization: bool
    ) -> bool:
        """Add a grant. Returns False if nothing was stored."""
        if role is Role.NONE:
            log.debug(f"User {user.id} has no role in org {organization_id}, no row written")
            return False

        key = (user.id, organization_id)
        existing = self._grants.get(key)
        if existing is not None:
            if existing.role.at_least(role):
                log.debug(
                    f"User {user.id} already holds {existing.role.value} in org {organization_id}, "
                    f"ignoring {role.value}"
                )
                return False
            log.debug(
                f"User {user.id} upgraded from {existing.role.value} to {role.value} in org {organization_id}"
            )
            is_home_organization = is_home_organization or existing.is_home_organization

        self._grants[key] = DerivedRoleGrant(
            user_id=user.id,
            organization_id=organization_id,
            role=role,
            is_home_organization=is_home_organization,
        )
        self._account_classes[user.id] = user.account_class
        return True

    def grants(self) -> List[DerivedRoleGrant]:
        return list(self._grants.values())

    def count_by_account_class(self) -> Dict[AccountClass, int]:
        counts = Counter(self._account_classes[user_id] for user_id, _ in self._grants)
        return dict(counts)

    def __len__(self) -> int:
        return len(self._grants)


class RoleDerivationEngine:
    """
    Rebuilds the derived role table.

    Usage:
        engine = RoleDerivationEngine(SqlRoleStore(db))
        result = await engine.rebuild()
    """

    def __init__(self, store: RoleStore, root_organization_id: str = config.ROOT_ORGANIZATION_ID):
        self.store = store
        self.root_organization_id = root_organization_id

    async def rebuild(self) -> RebuildResult:
        """
        Derive every user's roles and replace the stored table with the result.

        Data-quality problems are reported in the result, never raised.

        Raises:
            RoleStoreError: if reading the input or replacing the table fails;
                the previously stored rows are left as they were
        """
        log.info("Rebuilding derived roles")

        users = await self.store.list_users()
        organizations = await self.store.list_organizations()
        resolver = RelationshipResolver(self.store)

        accumulator = GrantAccumulator()
        skipped: List[RebuildDiagnostic] = []

        users_by_class: Dict[AccountClass, List[UserRecord]] = {cls: [] for cls in AccountClass}
        for user in users:
            users_by_class[user.account_class].append(user)

        self._process_internal_users(users_by_class[AccountClass.INTERNAL], organizations, accumulator)
        self._process_external_users(users_by_class[AccountClass.EXTERNAL], accumulator, skipped)
        await self._process_operator_users(
            users_by_class[AccountClass.OPERATOR] + users_by_class[AccountClass.MANAGER],
            {user.id: user for user in users},
            {org.id for org in organizations},
            resolver,
            accumulator,
            skipped,
        )

        grants = accumulator.grants()
        await self.store.replace_derived_roles(grants)

        result = RebuildResult(
            rows_written=len(grants),
            rows_by_account_class=accumulator.count_by_account_class(),
            skipped=skipped,
        )
        log.info(f"Derived role rebuild wrote {result.rows_written} rows, skipped {len(skipped)} users")
        return result

    def _process_internal_users(
        self,
        users: List[UserRecord],
        organizations: List[OrganizationRecord],
        accumulator: GrantAccumulator
    ) -> None:
        fan_out_ids = [
            org.id for org in organizations
            if org.kind in FAN_OUT_KINDS and org.id != self.root_organization_id
        ]

        for user in users:
            role = legacy_to_role(user.legacy_role, True)
            log.debug(f"Internal user {user.id}: legacy role {user.legacy_role} -> {role.value}")
            accumulator.emit(user, self.root_organization_id, role, True)

            if role is Role.ROOT_ADMIN:
                for organization_id in fan_out_ids:
                    accumulator.emit(user, organization_id, Role.ROOT_ADMIN, False)

        log.info(f"Processed {len(users)} internal users")

    def _process_external_users(
        self,
        users: List[UserRecord],
        accumulator: GrantAccumulator,
        skipped: List[RebuildDiagnostic]
    ) -> None:
        for user in users:
            linked = user.linked_organization_ids
            if len(linked) != 1:
                detail = f"linked to {len(linked)} organizations, expected 1"
                log.warning(f"Skipping external user {user.id}: {detail}")
                skipped.append(RebuildDiagnostic(
                    user_id=user.id,
                    reason=DiagnosticReason.EXTERNAL_LINK_COUNT,
                    detail=detail,
                ))
                continue

            role = legacy_to_role(user.legacy_role, True)
            log.debug(f"External user {user.id}: legacy role {user.legacy_role} -> {role.value}")
            accumulator.emit(user, linked[0], role, True)

        log.info(f"Processed {len(users)} external users")

    async def _process_operator_users(
        self,
        users: List[UserRecord],
        users_by_id: Dict[str, UserRecord],
        organization_ids: Set[str],
        resolver: RelationshipResolver,
        accumulator: GrantAccumulator,
        skipped: List[RebuildDiagnostic]
    ) -> None:
        for user in users:
            home_id = self._effective_home_organization(user, users_by_id)
            if home_id is None:
                if not user.delegate_of_user_id:
                    detail = "no home organization"
                elif user.delegate_of_user_id not in users_by_id:
                    detail = f"primary account {user.delegate_of_user_id} not found"
                else:
                    detail = f"primary account {user.delegate_of_user_id} has no home organization"
                log.warning(f"Skipping {user.account_class.value} user {user.id}: {detail}")
                skipped.append(RebuildDiagnostic(
                    user_id=user.id,
                    reason=DiagnosticReason.MISSING_HOME_ORGANIZATION,
                    detail=detail,
                ))
                continue

            role = legacy_to_role(user.legacy_role, True)
            log.debug(
                f"{user.account_class.value} user {user.id} in home org {home_id}: "
                f"legacy role {user.legacy_role} -> {role.value}"
            )
            accumulator.emit(user, home_id, role, True)

            for organization_id in user.linked_organization_ids:
                if organization_id == home_id:
                    continue
                if organization_id not in organization_ids:
                    log.debug(f"User {user.id} is linked to unknown org {organization_id}")
                    continue

                relation = await resolver.resolve(home_id, organization_id)
                managed_role = oversight_role(relation)
                if relation is None:
                    log.debug(f"User {user.id}: org {home_id} does not manage org {organization_id}")
                else:
                    log.debug(f"User {user.id}: {managed_role.value} in managed org {organization_id}")
                accumulator.emit(user, organization_id, managed_role, False)

        log.info(f"Processed {len(users)} operator and manager users")

    @staticmethod
    def _effective_home_organization(
        user: UserRecord,
        users_by_id: Dict[str, UserRecord]
    ) -> Optional[str]:
        """Home organization of the user, or of its primary account for delegates."""
        if user.delegate_of_user_id:
            primary = users_by_id.get(user.delegate_of_user_id)
            return primary.home_organization_id if primary is not None else None
        return user.home_organization_id


async def rebuild_derived_roles(store: RoleStore) -> RebuildResult:
    """Rebuild the derived role table with the configured root organization."""
    return await RoleDerivationEngine(store).rebuild()
