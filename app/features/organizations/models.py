"""
Organization models.

Organizations are the tenants of the platform: the single root council, the
data owners (councils) and the operators that manage data owners. Relations
record which organization manages which, and whether that management comes
with admin rights.
"""
from sqlalchemy import String, ForeignKey, Boolean, Integer, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from app.core.database.base import Base, TimestampMixin
from app.features.roles.lattice import OrganizationKind


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.new())


class Organization(Base, TimestampMixin):
    """
    Organization model.

    Ids are strings; rows migrated from the legacy schema keep their legacy
    ids (the root council is "1"), new rows get a ULID.
    """
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    kind: Mapped[OrganizationKind] = mapped_column(
        SQLEnum(
            OrganizationKind,
            name="organization_kind",
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=False,
        index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Organizations managed by this one
    managed_relations: Mapped[list["OrganizationRelation"]] = relationship(
        "OrganizationRelation",
        foreign_keys="OrganizationRelation.parent_organization_id",
        back_populates="parent",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name!r}, kind={self.kind.value})>"


class OrganizationRelation(Base, TimestampMixin):
    """
    Directed management relation: the parent (normally an operator) manages the
    child (normally a data owner). At most one relation per ordered pair.
    """
    __tablename__ = "organization_relations"
    __table_args__ = (
        UniqueConstraint("parent_organization_id", "child_organization_id", name="uq_organization_relation"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    parent_organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    child_organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # True: the parent administers the child; False: the parent may only view it
    is_admin_relation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    parent: Mapped["Organization"] = relationship(
        "Organization",
        foreign_keys=[parent_organization_id],
        back_populates="managed_relations",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return (
            f"<OrganizationRelation(parent={self.parent_organization_id}, "
            f"child={self.child_organization_id}, admin={self.is_admin_relation})>"
        )
