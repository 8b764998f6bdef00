"""
Permission matrix compiler.

Turns a role and the kind of the organization it is held in into CRUD
rights for every permission topic. Pure and cheap: called per request, no
caching, no I/O.
"""
from typing import Optional

from app.features.roles.lattice import OrganizationKind, PermissionTopic, Role
from app.features.roles.mapping import role_label
from app.features.roles.schemas import CRUDRight, PermissionMatrix, SecurityProfile


ALLOW_NONE = CRUDRight()
ALLOW_CRUD = CRUDRight(create=True, read=True, update=True, delete=True)
ALLOW_READ = CRUDRight(read=True)
ALLOW_READ_UPDATE = CRUDRight(read=True, update=True)


def compile_permission_matrix(
    role: Optional[Role],
    organization_kind: Optional[OrganizationKind]
) -> PermissionMatrix:
    """
    Compile the rights a role grants in an organization of the given kind.

    Every topic gets an entry; anything no rule grants is ALLOW_NONE. A missing
    role or organization kind simply grants nothing on the topics that need it.

    Args:
        role: Active role of the caller (None or Role.NONE for no role)
        organization_kind: Kind of the caller's active organization

    Returns:
        Mapping of every PermissionTopic to its CRUD rights
    """
    matrix: PermissionMatrix = {topic: ALLOW_NONE for topic in PermissionTopic}
    if role is None or role == Role.NONE:
        return matrix

    is_root_admin = role == Role.ROOT_ADMIN
    is_admin = is_root_admin or role == Role.ADMIN
    is_editor = is_admin or role == Role.EDITOR
    is_viewer = is_editor or role == Role.VIEWER

    is_root = organization_kind == OrganizationKind.ROOT_COUNCIL
    is_operator = organization_kind == OrganizationKind.OPERATOR
    is_data_owner = organization_kind == OrganizationKind.DATA_OWNER

    def grant(topic: PermissionTopic, allowed: bool, rights: CRUDRight = ALLOW_CRUD) -> None:
        if allowed:
            matrix[topic] = rights

    grant(PermissionTopic.PLATFORM_SUPERADMIN, is_root and is_root_admin)
    grant(PermissionTopic.PLATFORM_ADMIN, is_root and is_admin)
    grant(PermissionTopic.OPERATOR_SUPERADMIN, is_operator and is_root_admin)
    grant(PermissionTopic.BETA_FEATURES, is_root and is_admin)
    grant(PermissionTopic.OPERATOR_ACCESS_RIGHTS, is_root_admin)
    grant(PermissionTopic.DATA_OWNER_USERS_ADMIN, is_root_admin)
    grant(PermissionTopic.DATA_OWNER_USERS_LIMITED, is_admin)
    grant(PermissionTopic.DATA_OWNER_SETTINGS, is_root and is_admin)
    grant(PermissionTopic.SITE_CONTENT, is_editor)
    grant(PermissionTopic.FACILITY_SETTINGS_ADMIN, is_admin)
    grant(PermissionTopic.FACILITY_SETTINGS_LIMITED, is_editor)
    grant(PermissionTopic.REPORTS, is_viewer)
    grant(PermissionTopic.FMS_SERVICES, is_root_admin)

    if is_root and is_root_admin:
        matrix[PermissionTopic.QUEUE_OVERSIGHT] = ALLOW_CRUD
    elif is_root and is_admin:
        matrix[PermissionTopic.QUEUE_OVERSIGHT] = ALLOW_READ

    return matrix


def has_any_right(matrix: PermissionMatrix, topic: PermissionTopic) -> bool:
    """True if any of the CRUD flags for `topic` is set."""
    rights = matrix.get(topic, ALLOW_NONE)
    return rights.create or rights.read or rights.update or rights.delete


def create_security_profile(
    role: Optional[Role],
    organization_kind: Optional[OrganizationKind]
) -> SecurityProfile:
    """Bundle a role with its compiled matrix."""
    role = role or Role.NONE
    return SecurityProfile(
        role=role,
        role_label=role_label(role),
        organization_kind=organization_kind,
        rights=compile_permission_matrix(role, organization_kind),
    )
