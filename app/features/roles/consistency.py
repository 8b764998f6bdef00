"""
Derived role consistency check.
"""
from app.features.roles.repository import RoleStore
from app.features.roles.schemas import ConsistencyReport
from app.utils import get_logger


log = get_logger(__name__)


async def find_orphans(store: RoleStore) -> ConsistencyReport:
    """
    Find derived rows whose user or organization no longer exists.

    Read-only; a row missing both is reported in both lists.
    """
    user_ids = {user.id for user in await store.list_users()}
    organization_ids = {org.id for org in await store.list_organizations()}

    report = ConsistencyReport()
    for grant in await store.list_derived_roles():
        if grant.user_id not in user_ids:
            report.missing_user.append(grant)
        if grant.organization_id not in organization_ids:
            report.missing_organization.append(grant)

    log.info(
        f"Derived role check: {len(report.missing_user)} rows without user, "
        f"{len(report.missing_organization)} rows without organization"
    )
    return report
