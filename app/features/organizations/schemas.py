"""
Pydantic schemas for organization-related responses.
"""
from datetime import datetime
from pydantic import BaseModel

from app.features.roles.lattice import OrganizationKind


class OrganizationResponse(BaseModel):
    """Schema for organization responses."""
    id: str
    name: str
    kind: OrganizationKind
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrganizationRelationResponse(BaseModel):
    """Schema for a management relation."""
    parent_organization_id: str
    child_organization_id: str
    is_admin_relation: bool

    model_config = {"from_attributes": True}
