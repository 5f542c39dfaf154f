"""Notification, notification preference and push subscription ORM models."""

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
)


class Notification(CuidMixin, CreatedAtMixin, Base):
    """In-app notification for one user; optionally about a project. Table: notification."""

    __tablename__ = "notification"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    channel: Mapped[str] = mapped_column(String(16), nullable=False, default="in_app")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    project = relationship("Project")
    user = relationship("User")


class NotificationPreference(MultiTenantModel, Base):
    """Per-user, per-tenant delivery preferences. Table: notification_preference."""

    __tablename__ = "notification_preference"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    push_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_notification_preference"),
    )


class PushSubscription(MultiTenantModel, Base):
    """Registered push endpoint for a user's device. Table: push_subscription."""

    __tablename__ = "push_subscription"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    endpoint: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    p256dh: Mapped[str | None] = mapped_column(String, nullable=True)
    auth: Mapped[str | None] = mapped_column(String, nullable=True)
