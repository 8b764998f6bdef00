"""
Create an internal root user.

Run this script after database initialization to:
- Create the root council organization if it does not exist
- Create an internal user with legacy role ROOT
- Give that user the root admin role in the root council

The last step writes the derived role directly, so the gated role routes
(including the rebuild) can be used on a fresh database.

Usage:
    python -m scripts.create_root_user "Jane Doe"
"""
import asyncio
import sys
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db, init_db
from app.features.organizations.models import Organization
from app.features.roles.lattice import AccountClass, LegacyRole, OrganizationKind, Role
from app.features.roles.repository import SqlRoleStore
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)

ROOT_ORGANIZATION_NAME = "Root council"


async def ensure_root_organization(db: AsyncSession) -> Organization:
    """Return the root council, creating it if missing."""
    organization = await db.get(Organization, config.ROOT_ORGANIZATION_ID)
    if organization is not None:
        log.debug(f"Root organization '{organization.name}' already exists, skipping")
        return organization

    organization = Organization(
        id=config.ROOT_ORGANIZATION_ID,
        name=ROOT_ORGANIZATION_NAME,
        kind=OrganizationKind.ROOT_COUNCIL,
    )
    db.add(organization)
    await db.commit()
    log.info(f"Created root organization {organization.id}")
    return organization


async def create_root_user(db: AsyncSession, name: str) -> User:
    """Create an internal root user and its root admin role in the root council."""
    organization = await ensure_root_organization(db)

    user = User(
        name=name,
        account_class=AccountClass.INTERNAL,
        legacy_role=int(LegacyRole.ROOT),
        home_organization_id=organization.id,
    )
    db.add(user)
    await db.flush()

    store = SqlRoleStore(db)
    await store.set_derived_role(user.id, organization.id, Role.ROOT_ADMIN, True)
    await db.commit()

    log.info(f"Created root user '{name}' with id {user.id}")
    return user


async def main(name: str):
    log.info("Creating root user...")

    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            user = await create_root_user(db, name)
            log.info("")
            log.info("Use these headers to call the gated role routes:")
            log.info(f"  X-User-ID: {user.id}")
            log.info(f"  X-Organization-ID: {config.ROOT_ORGANIZATION_ID}")
        except Exception as e:
            log.error(f"Error creating root user: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python -m scripts.create_root_user <name>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
