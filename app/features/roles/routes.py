"""
Role management API routes.

Provides the derived role rebuild and consistency check, permission matrix
compilation, the caller's security profile, and per-user role assignment.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from app.core import config
from app.features.organizations.dependencies import get_organization_by_id
from app.features.organizations.models import Organization
from app.features.roles.consistency import find_orphans
from app.features.roles.dependencies import get_role_store, get_security_profile, require_topic
from app.features.roles.derivation import RoleDerivationEngine
from app.features.roles.lattice import AccountClass, OrganizationKind, PermissionTopic, Role
from app.features.roles.mapping import role_to_legacy
from app.features.roles.matrix import create_security_profile
from app.features.roles.repository import RoleStoreError, SqlRoleStore
from app.features.roles.schemas import (
    AssignRole,
    AssignRoleResponse,
    ConsistencyReport,
    DerivedRoleResponse,
    DerivedRoleTableStatus,
    RebuildResult,
    SecurityProfile,
)
from app.features.users.dependencies import get_user_by_id
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Derived Role Table
# ============================================================================

@router.post("/rebuild", response_model=RebuildResult)
async def rebuild_derived_roles(
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    profile: Annotated[SecurityProfile, Depends(require_topic(PermissionTopic.PLATFORM_SUPERADMIN))]
):
    """Rebuild every user's derived roles from legacy account data."""
    try:
        result = await RoleDerivationEngine(store).rebuild()
    except RoleStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to rebuild derived roles"
        )

    for diagnostic in result.skipped:
        log.info(f"Rebuild skipped user {diagnostic.user_id}: {diagnostic.detail}")
    return result


@router.get("/consistency", response_model=ConsistencyReport)
async def check_consistency(
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    profile: Annotated[SecurityProfile, Depends(require_topic(PermissionTopic.PLATFORM_SUPERADMIN))]
):
    """List derived roles that reference deleted users or organizations."""
    try:
        return await find_orphans(store)
    except RoleStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to check derived roles"
        )


@router.get("/status", response_model=DerivedRoleTableStatus)
async def get_table_status(
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    profile: Annotated[SecurityProfile, Depends(require_topic(PermissionTopic.PLATFORM_SUPERADMIN))]
):
    """Get the number of stored derived roles."""
    return DerivedRoleTableStatus(size=await store.count_derived_roles())


# ============================================================================
# Permission Matrix
# ============================================================================

@router.get("/matrix", response_model=SecurityProfile)
async def get_permission_matrix(
    role: Role,
    organization_kind: Optional[OrganizationKind] = None
):
    """Compile the permission matrix of a role in an organization of the given kind."""
    return create_security_profile(role, organization_kind)


@router.get("/profile", response_model=SecurityProfile)
async def get_my_profile(
    profile: Annotated[SecurityProfile, Depends(get_security_profile)]
):
    """Get the caller's security profile in their active organization."""
    return profile


# ============================================================================
# User Role Assignment
# ============================================================================

@router.get("/users/{user_id}", response_model=List[DerivedRoleResponse])
async def list_user_roles(
    user: Annotated[User, Depends(get_user_by_id)],
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    profile: Annotated[SecurityProfile, Depends(require_topic(PermissionTopic.DATA_OWNER_USERS_LIMITED))]
):
    """List the derived roles of a user."""
    return await store.list_derived_roles_for_user(user.id)


@router.put("/users/{user_id}/organizations/{organization_id}", response_model=AssignRoleResponse)
async def assign_user_role(
    assignment: AssignRole,
    user: Annotated[User, Depends(get_user_by_id)],
    organization: Annotated[Organization, Depends(get_organization_by_id)],
    store: Annotated[SqlRoleStore, Depends(get_role_store)],
    profile: Annotated[SecurityProfile, Depends(require_topic(PermissionTopic.DATA_OWNER_USERS_ADMIN))]
):
    """
    Set a user's role in an organization ('none' removes it).

    For the user's home organization the legacy role is written back as well,
    when the user's account class has a legacy value for the role.
    """
    if user.account_class == AccountClass.INTERNAL:
        is_home = organization.id == config.ROOT_ORGANIZATION_ID
    elif user.account_class == AccountClass.EXTERNAL:
        is_home = user.linked_organization_ids == [organization.id]
    else:
        is_home = organization.id == user.home_organization_id

    try:
        await store.set_derived_role(user.id, organization.id, assignment.role, is_home)

        if is_home:
            legacy_role = role_to_legacy(assignment.role, user.account_class)
            if legacy_role is not None or assignment.role == Role.NONE:
                user.legacy_role = int(legacy_role) if legacy_role is not None else None

        await store.db.commit()
    except RoleStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to assign role"
        )

    log.info(f"User {user.id} now has role {assignment.role.value} in org {organization.id}")

    return AssignRoleResponse(
        user_id=user.id,
        organization_id=organization.id,
        role=assignment.role,
        is_home_organization=is_home,
        legacy_role=user.legacy_role,
    )
