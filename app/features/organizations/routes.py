"""
Organization feature routes.

Organizations and their relations are maintained by the legacy
administration; these routes only read.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.organizations.dependencies import get_organization_by_id
from app.features.organizations.models import Organization
from app.features.organizations.schemas import OrganizationResponse, OrganizationRelationResponse
from app.features.roles.lattice import OrganizationKind


router = APIRouter(tags=["organizations"])


@router.get("/", response_model=list[OrganizationResponse])
async def list_organizations(
    db: Annotated[AsyncSession, Depends(get_db)],
    kind: Optional[OrganizationKind] = None,
    skip: int = 0,
    limit: int = 50
):
    """List active organizations, optionally filtered by kind."""
    query = select(Organization).where(Organization.is_active == True)  # noqa: E712
    if kind is not None:
        query = query.where(Organization.kind == kind)

    query = query.order_by(Organization.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization: Annotated[Organization, Depends(get_organization_by_id)]
):
    """Get an organization by ID."""
    return organization


@router.get("/{organization_id}/relations", response_model=list[OrganizationRelationResponse])
async def list_managed_organizations(
    organization: Annotated[Organization, Depends(get_organization_by_id)]
):
    """List the organizations this organization manages."""
    return sorted(organization.managed_relations, key=lambda relation: relation.child_organization_id)
