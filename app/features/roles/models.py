"""
Derived role table.

One row per (user, organization) a user holds a role in. The table is
rebuilt as a whole by the derivation engine. Like the legacy table it
replaces, it carries no foreign keys, so rows can outlive the user or
organization they point at; the consistency checker reports those.
"""
from sqlalchemy import String, Boolean, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
import ulid

from app.core.database.base import Base, TimestampMixin
from app.features.roles.lattice import Role


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.new())


class DerivedRole(Base, TimestampMixin):
    """Role of a user in one organization. Role.NONE is never stored."""
    __tablename__ = "user_organization_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_user_organization_role"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_ulid)

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    organization_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    role: Mapped[Role] = mapped_column(
        SQLEnum(
            Role,
            name="derived_role",
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False
    )
    is_home_organization: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<DerivedRole(user_id={self.user_id}, org_id={self.organization_id}, "
            f"role={self.role.value}, home={self.is_home_organization})>"
        )
