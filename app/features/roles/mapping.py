"""
Conversion between legacy single-value roles and organization-scoped roles.

The legacy user table stores one RoleID per user. Its meaning depends on
whether the organization being looked at is the user's own (home)
organization, so the forward mapping takes that flag explicitly. The inverse
mapping needs the account class, because ADMIN/EDITOR/VIEWER correspond to
different legacy constants per class.
"""
from typing import Optional

from app.features.roles.lattice import AccountClass, LegacyRole, Role


# Roles granted regardless of context
_FIXED_ROLES: dict[LegacyRole, Role] = {
    LegacyRole.OPERATOR_ADMIN: Role.ADMIN,
    LegacyRole.INTERNAL_ADMIN: Role.ADMIN,
    LegacyRole.INTERNAL_EDITOR: Role.EDITOR,
    LegacyRole.OPERATOR_ANALYST: Role.VIEWER,
    LegacyRole.INTERNAL_ANALYST: Role.VIEWER,
}

# Roles granted only in the home organization; elsewhere NONE
_HOME_ONLY_ROLES: dict[LegacyRole, Role] = {
    LegacyRole.EXTERNAL_ADMIN: Role.ADMIN,
    LegacyRole.EXTERNAL_EDITOR: Role.EDITOR,
    LegacyRole.EXTERNAL_ANALYST: Role.VIEWER,
    LegacyRole.MANAGER_ADMIN: Role.ADMIN,
}

_LEGACY_BY_CLASS: dict[AccountClass, dict[Role, LegacyRole]] = {
    AccountClass.INTERNAL: {
        Role.ROOT_ADMIN: LegacyRole.ROOT,
        Role.ADMIN: LegacyRole.INTERNAL_ADMIN,
        Role.EDITOR: LegacyRole.INTERNAL_EDITOR,
        Role.VIEWER: LegacyRole.INTERNAL_ANALYST,
    },
    AccountClass.EXTERNAL: {
        Role.ROOT_ADMIN: LegacyRole.EXTERNAL_ADMIN,
        Role.ADMIN: LegacyRole.EXTERNAL_ADMIN,
        Role.EDITOR: LegacyRole.EXTERNAL_EDITOR,
        Role.VIEWER: LegacyRole.EXTERNAL_ANALYST,
    },
    AccountClass.OPERATOR: {
        Role.ROOT_ADMIN: LegacyRole.OPERATOR_ADMIN,
        Role.ADMIN: LegacyRole.OPERATOR_ADMIN,
        Role.VIEWER: LegacyRole.OPERATOR_ANALYST,
    },
    AccountClass.MANAGER: {
        Role.ROOT_ADMIN: LegacyRole.MANAGER_ADMIN,
        Role.ADMIN: LegacyRole.MANAGER_ADMIN,
    },
}

ROLE_LABELS: dict[Role, str] = {
    Role.ROOT_ADMIN: "Super admin",
    Role.ADMIN: "Admin",
    Role.EDITOR: "Editor",
    Role.VIEWER: "Data analyst",
    Role.NONE: "No rights",
}

LEGACY_ROLE_LABELS: dict[LegacyRole, str] = {
    LegacyRole.ROOT: "Root",
    LegacyRole.INTERNAL_ADMIN: "Internal admin",
    LegacyRole.INTERNAL_EDITOR: "Internal editor",
    LegacyRole.EXTERNAL_ADMIN: "External admin",
    LegacyRole.EXTERNAL_EDITOR: "External editor",
    LegacyRole.OPERATOR_ADMIN: "Operator",
    LegacyRole.MANAGER_ADMIN: "Manager",
    LegacyRole.OPERATOR_ANALYST: "Operator data analyst",
    LegacyRole.INTERNAL_ANALYST: "Internal data analyst",
    LegacyRole.EXTERNAL_ANALYST: "External data analyst",
}


def parse_legacy_role(value: LegacyRole | int | None) -> Optional[LegacyRole]:
    """Return the LegacyRole for a stored RoleID, or None if it is unrecognized."""
    if value is None:
        return None
    try:
        return LegacyRole(value)
    except ValueError:
        return None


def legacy_to_role(legacy_role: LegacyRole | int | None, is_home_organization: bool) -> Role:
    """
    Map a legacy role to the role it grants in an organization.

    Args:
        legacy_role: Legacy RoleID (enum member, raw stored int or None)
        is_home_organization: Whether the organization is the user's own

    Returns:
        The granted role; Role.NONE for unrecognized or missing legacy roles
    """
    legacy = parse_legacy_role(legacy_role)
    if legacy is None:
        return Role.NONE

    if legacy is LegacyRole.ROOT:
        return Role.ROOT_ADMIN if is_home_organization else Role.ADMIN
    if legacy in _FIXED_ROLES:
        return _FIXED_ROLES[legacy]
    if legacy in _HOME_ONLY_ROLES:
        return _HOME_ONLY_ROLES[legacy] if is_home_organization else Role.NONE

    return Role.NONE


def role_to_legacy(role: Role | None, account_class: AccountClass) -> Optional[LegacyRole]:
    """
    Map a role back to the legacy RoleID recorded for a user of `account_class`.

    ROOT_ADMIN outside the internal class becomes the class's admin value.
    Returns None when the class has no legacy constant for the role, and for
    Role.NONE.
    """
    if role is None or role is Role.NONE:
        return None
    return _LEGACY_BY_CLASS[account_class].get(role)


def role_label(role: Role | None) -> str:
    if role is None:
        return ROLE_LABELS[Role.NONE]
    return ROLE_LABELS[role]


def legacy_role_label(legacy_role: LegacyRole | int | None) -> str:
    legacy = parse_legacy_role(legacy_role)
    if legacy is None:
        return "Unknown"
    return LEGACY_ROLE_LABELS[legacy]
