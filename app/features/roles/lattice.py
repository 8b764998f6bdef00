"""
Role lattice and the enumerations shared by the role engine.

Values of the legacy-facing enums are the literal values stored in the legacy
schema (contact ItemType, user GroupID and RoleID), so they can be read from
and written back to that schema unchanged.
"""
import enum


class Role(str, enum.Enum):
    """Organization-scoped role, ordered ROOT_ADMIN > ADMIN > EDITOR > VIEWER > NONE."""
    ROOT_ADMIN = "rootadmin"
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "Role") -> bool:
        """True if this role grants everything `other` grants."""
        return self.rank >= other.rank


_ROLE_RANK = {
    Role.NONE: 0,
    Role.VIEWER: 1,
    Role.EDITOR: 2,
    Role.ADMIN: 3,
    Role.ROOT_ADMIN: 4,
}


class LegacyRole(enum.IntEnum):
    """Single-value role of the legacy user table (RoleID)."""
    ROOT = 1
    INTERNAL_ADMIN = 2
    INTERNAL_EDITOR = 3
    EXTERNAL_ADMIN = 4
    EXTERNAL_EDITOR = 5
    OPERATOR_ADMIN = 6  # "Exploitant"
    MANAGER_ADMIN = 7  # "Beheerder"
    OPERATOR_ANALYST = 8
    INTERNAL_ANALYST = 9
    EXTERNAL_ANALYST = 10


class AccountClass(str, enum.Enum):
    """Account class of a user (GroupID)."""
    INTERNAL = "intern"
    EXTERNAL = "extern"
    OPERATOR = "exploitant"
    MANAGER = "beheerder"


class OrganizationKind(str, enum.Enum):
    """Kind of tenant (contact ItemType)."""
    ROOT_COUNCIL = "admin"
    DATA_OWNER = "organizations"
    OPERATOR = "exploitant"


class PermissionTopic(str, enum.Enum):
    """Capability areas, each gated independently."""
    PLATFORM_SUPERADMIN = "platform_superadmin"
    PLATFORM_ADMIN = "platform_admin"
    OPERATOR_SUPERADMIN = "operator_superadmin"
    BETA_FEATURES = "beta_features"
    OPERATOR_ACCESS_RIGHTS = "operator_access_rights"
    DATA_OWNER_USERS_ADMIN = "data_owner_users_admin"
    DATA_OWNER_USERS_LIMITED = "data_owner_users_limited"
    DATA_OWNER_SETTINGS = "data_owner_settings"
    SITE_CONTENT = "site_content"
    FACILITY_SETTINGS_ADMIN = "facility_settings_admin"
    FACILITY_SETTINGS_LIMITED = "facility_settings_limited"
    REPORTS = "reports"
    FMS_SERVICES = "fms_services"
    QUEUE_OVERSIGHT = "queue_oversight"
