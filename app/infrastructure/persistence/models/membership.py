"""Membership and invitation ORM models (direct tenant column)."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.enums import InvitationStatus, TenantRole
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TenantMixin,
)


class Membership(MultiTenantModel, Base):
    """A user's role inside a tenant. Table: membership."""

    __tablename__ = "membership"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TenantRole.WORKER.value
    )

    user = relationship("User", back_populates="memberships")

    __table_args__ = (UniqueConstraint("user_id", "tenant_id", name="uq_membership_user_tenant"),)


class Invitation(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    """Pending invitation of an e-mail address into a tenant. Table: invitation."""

    __tablename__ = "invitation"

    email: Mapped[str] = mapped_column(String, nullable=False, index=True)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TenantRole.WORKER.value
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=InvitationStatus.PENDING.value
    )
    token: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    invited_by_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
