"""Shared fixtures for role engine tests."""

from __future__ import annotations

from typing import Optional, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.database.engine import get_db, init_db
from app.features.organizations.models import Organization, OrganizationRelation
from app.features.roles.lattice import AccountClass, LegacyRole, OrganizationKind, Role
from app.features.roles.models import DerivedRole
from app.features.roles.repository import RoleStoreError
from app.features.roles.schemas import (
    DerivedRoleGrant,
    OrganizationRecord,
    RelationRecord,
    UserRecord,
)
from app.features.users.models import User
from app.main import app


ROOT_ID = "1"


class InMemoryRoleStore:
    """RoleStore keeping everything in dicts."""

    def __init__(self):
        self.users: dict[str, UserRecord] = {}
        self.organizations: dict[str, OrganizationRecord] = {}
        self.relations: dict[tuple[str, str], RelationRecord] = {}
        self.derived: list[DerivedRoleGrant] = []
        self.fail_on_replace = False
        self.resolve_calls = 0

    def add_organization(self, org_id: str, kind: OrganizationKind) -> OrganizationRecord:
        record = OrganizationRecord(id=org_id, kind=kind, name=f"Org {org_id}")
        self.organizations[org_id] = record
        return record

    def add_user(
        self,
        user_id: str,
        account_class: AccountClass,
        legacy_role: Optional[int] = None,
        home: Optional[str] = None,
        delegate_of: Optional[str] = None,
        linked: Sequence[str] = (),
    ) -> UserRecord:
        record = UserRecord(
            id=user_id,
            account_class=account_class,
            legacy_role=legacy_role,
            home_organization_id=home,
            delegate_of_user_id=delegate_of,
            linked_organization_ids=list(linked),
        )
        self.users[user_id] = record
        return record

    def add_relation(self, parent_id: str, child_id: str, is_admin: bool) -> None:
        self.relations[(parent_id, child_id)] = RelationRecord(
            parent_organization_id=parent_id,
            child_organization_id=child_id,
            is_admin_relation=is_admin,
        )

    async def list_users(self, account_class: Optional[AccountClass] = None) -> list[UserRecord]:
        return [u for u in self.users.values() if account_class is None or u.account_class == account_class]

    async def list_organizations(self, kind: Optional[OrganizationKind] = None) -> list[OrganizationRecord]:
        return [o for o in self.organizations.values() if kind is None or o.kind == kind]

    async def resolve_relation(self, parent_id: str, child_id: str) -> Optional[RelationRecord]:
        self.resolve_calls += 1
        return self.relations.get((parent_id, child_id))

    async def replace_derived_roles(self, grants: Sequence[DerivedRoleGrant]) -> None:
        if self.fail_on_replace:
            raise RoleStoreError("Unable to replace derived roles")
        self.derived = list(grants)

    async def list_derived_roles(self) -> list[DerivedRoleGrant]:
        return list(self.derived)

    def rows_for(self, user_id: str) -> dict[str, DerivedRoleGrant]:
        return {g.organization_id: g for g in self.derived if g.user_id == user_id}


@pytest.fixture
def store():
    """Empty in-memory store with the root council registered."""
    s = InMemoryRoleStore()
    s.add_organization(ROOT_ID, OrganizationKind.ROOT_COUNCIL)
    return s


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def seeded(session_factory):
    """
    Small platform:

    - root council "1", data owners "A" and "B", operator "C"
    - C administers A and may view B
    - u-root (internal, ROOT), u-editor (internal, INTERNAL_EDITOR),
      u-ext (external, EXTERNAL_ADMIN, linked to A),
      u-op (operator, OPERATOR_ADMIN, home C, linked to A and B)
    """
    async with session_factory() as session:
        root = Organization(id=ROOT_ID, name="Root council", kind=OrganizationKind.ROOT_COUNCIL)
        org_a = Organization(id="A", name="Council A", kind=OrganizationKind.DATA_OWNER)
        org_b = Organization(id="B", name="Council B", kind=OrganizationKind.DATA_OWNER)
        org_c = Organization(id="C", name="Operator C", kind=OrganizationKind.OPERATOR)
        session.add_all([root, org_a, org_b, org_c])
        session.add_all([
            OrganizationRelation(parent_organization_id="C", child_organization_id="A", is_admin_relation=True),
            OrganizationRelation(parent_organization_id="C", child_organization_id="B", is_admin_relation=False),
        ])
        session.add_all([
            User(id="u-root", name="Root", account_class=AccountClass.INTERNAL,
                 legacy_role=int(LegacyRole.ROOT), home_organization_id=ROOT_ID),
            User(id="u-editor", name="Editor", account_class=AccountClass.INTERNAL,
                 legacy_role=int(LegacyRole.INTERNAL_EDITOR), home_organization_id=ROOT_ID),
            User(id="u-ext", name="External", account_class=AccountClass.EXTERNAL,
                 legacy_role=int(LegacyRole.EXTERNAL_ADMIN), linked_organizations=[org_a]),
            User(id="u-op", name="Operator", account_class=AccountClass.OPERATOR,
                 legacy_role=int(LegacyRole.OPERATOR_ADMIN), home_organization_id="C",
                 linked_organizations=[org_a, org_b]),
        ])
        # Bootstrap row so the root user can call the gated routes
        session.add(DerivedRole(user_id="u-root", organization_id=ROOT_ID,
                                role=Role.ROOT_ADMIN, is_home_organization=True))
        await session.commit()
    return session_factory


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP test client wired to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def caller(user_id: str, organization_id: str = ROOT_ID) -> dict[str, str]:
    """Identity headers set by the session layer."""
    return {"X-User-ID": user_id, "X-Organization-ID": organization_id}


@pytest.fixture
def headers_for():
    return caller


@pytest.fixture
def root_headers():
    return caller("u-root")
