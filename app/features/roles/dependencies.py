"""
Role checking dependencies.

The session layer in front of this service resolves who the caller is and
which organization they are working in, and forwards both as the
X-User-ID and X-Organization-ID headers. The caller's security profile is
their derived role in that organization, compiled against its kind.
"""
from typing import Annotated, Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.organizations.models import Organization
from app.features.roles.lattice import PermissionTopic, Role
from app.features.roles.matrix import create_security_profile, has_any_right
from app.features.roles.repository import SqlRoleStore
from app.features.roles.schemas import SecurityProfile
from app.utils import get_logger


log = get_logger(__name__)


async def get_role_store(db: Annotated[AsyncSession, Depends(get_db)]) -> SqlRoleStore:
    return SqlRoleStore(db)


async def get_security_profile(
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_organization_id: Annotated[Optional[str], Header()] = None
) -> SecurityProfile:
    """
    Compile the caller's security profile for their active organization.

    Raises:
        HTTPException: 401 if the caller or their organization is unknown
    """
    if not x_user_id or not x_organization_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity"
        )

    result = await store.db.execute(
        select(Organization).where(Organization.id == x_organization_id)
    )
    organization = result.scalar_one_or_none()
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown active organization"
        )

    derived = await store.get_derived_role(x_user_id, x_organization_id)
    role = derived.role if derived is not None else Role.NONE

    return create_security_profile(role, organization.kind)


def require_topic(topic: PermissionTopic):
    """
    FastAPI dependency to require any right on a permission topic.

    Usage:
        @router.post("/rebuild")
        async def rebuild(
            profile: SecurityProfile = Depends(require_topic(PermissionTopic.PLATFORM_SUPERADMIN))
        ):
            ...

    Raises:
        HTTPException: 403 if the caller's profile grants nothing on the topic
    """
    async def topic_dependency(
        profile: Annotated[SecurityProfile, Depends(get_security_profile)]
    ) -> SecurityProfile:
        if not has_any_right(profile.rights, topic):
            log.debug(f"Role {profile.role.value} denied access to {topic.value}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {topic.value}"
            )
        return profile

    return topic_dependency
