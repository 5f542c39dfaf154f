"""Project and project member ORM models."""

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.enums import ProjectStatus
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
)


class Project(MultiTenantModel, Base):
    """Tenant-owned project; the parent most scoped entities hang off. Table: project."""

    __tablename__ = "project"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ProjectStatus.ACTIVE.value, index=True
    )


class ProjectMember(CuidMixin, CreatedAtMixin, Base):
    """Membership assigned to a project. Scoped via project. Table: project_member."""

    __tablename__ = "project_member"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True
    )
    membership_id: Mapped[str] = mapped_column(
        String, ForeignKey("membership.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project = relationship("Project")

    __table_args__ = (
        UniqueConstraint("project_id", "membership_id", name="uq_project_member"),
    )
