"""Tenant and user ORM models. Roots of the scoping hierarchy (no tenant_id)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Tenant(CuidMixin, TimestampMixin, Base):
    """Customer organization. Table: tenant."""

    __tablename__ = "tenant"

    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)


class User(CuidMixin, TimestampMixin, Base):
    """Platform user; belongs to tenants through memberships. Table: app_user."""

    __tablename__ = "app_user"

    email: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)

    memberships = relationship("Membership", back_populates="user")
