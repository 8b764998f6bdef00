"""
User model.

Users carry the legacy account data the role engine derives roles from: the
account class, the single legacy RoleID, a home organization, an optional
primary account (for delegate sub-accounts) and the organizations they are
linked to.
"""
from sqlalchemy import String, Boolean, Integer, ForeignKey, Table, Column, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from app.core.database.base import Base, TimestampMixin
from app.features.roles.lattice import AccountClass


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.new())


# Organizations a user is explicitly linked to
user_organization_links = Table(
    "user_organization_links",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("organization_id", String(36), ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base, TimestampMixin):
    """
    User model.

    `legacy_role` is kept as the raw stored integer: legacy data may hold values
    outside the known set, which the role mapper treats as no role.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_class: Mapped[AccountClass] = mapped_column(
        SQLEnum(
            AccountClass,
            name="account_class",
            values_callable=lambda classes: [cls.value for cls in classes],
        ),
        nullable=False,
        index=True
    )
    legacy_role: Mapped[int | None] = mapped_column(Integer, nullable=True)

    home_organization_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Set for sub-accounts acting on behalf of a primary operator/manager account
    delegate_of_user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    linked_organizations: Mapped[list["Organization"]] = relationship(  # type: ignore
        "Organization",
        secondary=user_organization_links,
        lazy="selectin"
    )

    @property
    def linked_organization_ids(self) -> list[str]:
        return [organization.id for organization in self.linked_organizations]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name={self.name!r}, class={self.account_class.value})>"
