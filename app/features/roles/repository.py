"""
Persistence collaborator for the role engine.

`RoleStore` is the interface the engine and the consistency checker read
and write through; `SqlRoleStore` implements it on an async SQLAlchemy
session.
"""
from typing import Optional, Protocol, Sequence
from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.organizations.models import Organization, OrganizationRelation
from app.features.roles.lattice import AccountClass, OrganizationKind, Role
from app.features.roles.models import DerivedRole
from app.features.roles.schemas import (
    DerivedRoleGrant,
    OrganizationRecord,
    RelationRecord,
    UserRecord,
)
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


class RoleStoreError(Exception):
    """Reading or writing the role store failed."""


class RoleStore(Protocol):
    async def list_users(self, account_class: Optional[AccountClass] = None) -> list[UserRecord]:
        ...

    async def list_organizations(self, kind: Optional[OrganizationKind] = None) -> list[OrganizationRecord]:
        ...

    async def resolve_relation(self, parent_id: str, child_id: str) -> Optional[RelationRecord]:
        ...

    async def replace_derived_roles(self, grants: Sequence[DerivedRoleGrant]) -> None:
        ...

    async def list_derived_roles(self) -> list[DerivedRoleGrant]:
        ...


class SqlRoleStore:
    """RoleStore backed by the application database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self, account_class: Optional[AccountClass] = None) -> list[UserRecord]:
        stmt = select(User)
        if account_class is not None:
            stmt = stmt.where(User.account_class == account_class)
        result = await self._execute(stmt.order_by(User.id))
        return [UserRecord.model_validate(user) for user in result.scalars().all()]

    async def list_organizations(self, kind: Optional[OrganizationKind] = None) -> list[OrganizationRecord]:
        stmt = select(Organization)
        if kind is not None:
            stmt = stmt.where(Organization.kind == kind)
        result = await self._execute(stmt.order_by(Organization.id))
        return [OrganizationRecord.model_validate(org) for org in result.scalars().all()]

    async def resolve_relation(self, parent_id: str, child_id: str) -> Optional[RelationRecord]:
        stmt = select(OrganizationRelation).where(
            OrganizationRelation.parent_organization_id == parent_id,
            OrganizationRelation.child_organization_id == child_id,
        )
        result = await self._execute(stmt)
        relation = result.scalar_one_or_none()
        if relation is None:
            return None
        return RelationRecord.model_validate(relation)

    async def replace_derived_roles(self, grants: Sequence[DerivedRoleGrant]) -> None:
        """
        Replace the whole derived role table in one transaction.

        Raises:
            RoleStoreError: if clearing or writing fails; the previous rows are kept
        """
        try:
            await self.db.execute(delete(DerivedRole))
            self.db.add_all([
                DerivedRole(
                    user_id=grant.user_id,
                    organization_id=grant.organization_id,
                    role=grant.role,
                    is_home_organization=grant.is_home_organization,
                )
                for grant in grants
            ])
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Unable to replace derived roles: {e}")
            raise RoleStoreError("Unable to replace derived roles") from e

        log.info(f"Wrote {len(grants)} derived roles")

    async def list_derived_roles(self) -> list[DerivedRoleGrant]:
        stmt = select(DerivedRole).order_by(DerivedRole.user_id, DerivedRole.organization_id)
        result = await self._execute(stmt)
        return [DerivedRoleGrant.model_validate(row) for row in result.scalars().all()]

    async def count_derived_roles(self) -> int:
        result = await self._execute(select(func.count()).select_from(DerivedRole))
        return result.scalar() or 0

    async def list_derived_roles_for_user(self, user_id: str) -> list[DerivedRole]:
        stmt = select(DerivedRole).where(DerivedRole.user_id == user_id).order_by(DerivedRole.organization_id)
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def get_derived_role(self, user_id: str, organization_id: str) -> Optional[DerivedRole]:
        stmt = select(DerivedRole).where(
            DerivedRole.user_id == user_id,
            DerivedRole.organization_id == organization_id,
        )
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def set_derived_role(
        self,
        user_id: str,
        organization_id: str,
        role: Role,
        is_home_organization: bool
    ) -> None:
        """
        Set a single user's role in one organization; Role.NONE removes the row.

        The caller commits.
        """
        try:
            existing = await self.get_derived_role(user_id, organization_id)
            if role is Role.NONE:
                if existing is not None:
                    await self.db.delete(existing)
            elif existing is None:
                self.db.add(DerivedRole(
                    user_id=user_id,
                    organization_id=organization_id,
                    role=role,
                    is_home_organization=is_home_organization,
                ))
            else:
                existing.role = role
                existing.is_home_organization = is_home_organization
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.error(f"Unable to set role for user {user_id} in org {organization_id}: {e}")
            raise RoleStoreError("Unable to set derived role") from e

    async def _execute(self, stmt):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            log.error(f"Role store query failed: {e}")
            raise RoleStoreError("Role store query failed") from e
