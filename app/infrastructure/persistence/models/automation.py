"""Automation, automation log and e-mail template ORM models."""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
)


class Automation(MultiTenantModel, Base):
    """Tenant automation rule (trigger + action); executed by an external scheduler. Table: automation."""

    __tablename__ = "automation"

    name: Mapped[str] = mapped_column(String, nullable=False)
    trigger: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class AutomationLog(CuidMixin, CreatedAtMixin, Base):
    """Execution record of an automation. Scoped via automation. Table: automation_log."""

    __tablename__ = "automation_log"

    automation_id: Mapped[str] = mapped_column(
        String, ForeignKey("automation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)

    automation = relationship("Automation")


class EmailTemplate(MultiTenantModel, Base):
    """Tenant e-mail template. Table: email_template."""

    __tablename__ = "email_template"

    name: Mapped[str] = mapped_column(String, nullable=False)
    subject: Mapped[str] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
