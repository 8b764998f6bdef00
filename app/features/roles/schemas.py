"""
Pydantic schemas for the role engine.

Records exchanged with the persistence collaborator, rebuild and consistency
results, CRUD rights and security profiles, and request/response models for
the role routes.
"""
import enum
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from app.features.roles.lattice import AccountClass, OrganizationKind, PermissionTopic, Role


# ============================================================================
# Collaborator Records
# ============================================================================

class OrganizationRecord(BaseModel):
    """An organization as seen by the role engine."""
    id: str
    kind: OrganizationKind
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RelationRecord(BaseModel):
    """Directed management relation between two organizations."""
    parent_organization_id: str
    child_organization_id: str
    is_admin_relation: bool

    model_config = ConfigDict(from_attributes=True)


class UserRecord(BaseModel):
    """A user's legacy account data."""
    id: str
    account_class: AccountClass
    legacy_role: Optional[int] = None
    home_organization_id: Optional[str] = None
    delegate_of_user_id: Optional[str] = None
    linked_organization_ids: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class DerivedRoleGrant(BaseModel):
    """One derived (user, organization, role) row."""
    user_id: str
    organization_id: str
    role: Role
    is_home_organization: bool

    model_config = ConfigDict(from_attributes=True, frozen=True)


# ============================================================================
# Rebuild / Consistency Results
# ============================================================================

class DiagnosticReason(str, enum.Enum):
    """Why a user was skipped during a rebuild."""
    EXTERNAL_LINK_COUNT = "external_link_count"
    MISSING_HOME_ORGANIZATION = "missing_home_organization"


class RebuildDiagnostic(BaseModel):
    """A data-quality problem found while deriving roles for one user."""
    user_id: str
    reason: DiagnosticReason
    detail: str


class RebuildResult(BaseModel):
    """Outcome of a derived role rebuild."""
    rows_written: int
    rows_by_account_class: Dict[AccountClass, int] = Field(default_factory=dict)
    skipped: List[RebuildDiagnostic] = Field(default_factory=list)


class ConsistencyReport(BaseModel):
    """Derived rows pointing at users or organizations that no longer exist."""
    missing_user: List[DerivedRoleGrant] = Field(default_factory=list)
    missing_organization: List[DerivedRoleGrant] = Field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.missing_user and not self.missing_organization


class DerivedRoleTableStatus(BaseModel):
    """Size of the derived role table."""
    size: int


# ============================================================================
# Permission Matrix
# ============================================================================

class CRUDRight(BaseModel):
    """Create/read/update/delete flags for one topic."""
    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False

    model_config = ConfigDict(frozen=True)


PermissionMatrix = Dict[PermissionTopic, CRUDRight]


class SecurityProfile(BaseModel):
    """A role together with the permission matrix it compiles to."""
    role: Role
    role_label: str
    organization_kind: Optional[OrganizationKind] = None
    rights: PermissionMatrix


# ============================================================================
# Route Schemas
# ============================================================================

class DerivedRoleResponse(DerivedRoleGrant):
    """Schema for a stored derived role."""
    id: str
    created_at: datetime
    updated_at: datetime


class AssignRole(BaseModel):
    """Schema for assigning a role to a user in an organization."""
    role: Role = Field(..., description="Role to assign; 'none' removes the user's role in the organization")


class AssignRoleResponse(BaseModel):
    """Result of a role assignment."""
    user_id: str
    organization_id: str
    role: Role
    is_home_organization: bool
    legacy_role: Optional[int] = Field(None, description="Legacy RoleID written back for the home organization")
