"""
Pydantic schemas for user-related responses.
"""
from datetime import datetime
from pydantic import BaseModel, Field

from app.features.roles.lattice import AccountClass


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: str
    name: str
    account_class: AccountClass
    legacy_role: int | None = None
    legacy_role_label: str = Field(default="Unknown", description="Readable name of the legacy role")
    home_organization_id: str | None = None
    delegate_of_user_id: str | None = None
    linked_organization_ids: list[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
