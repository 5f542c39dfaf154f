"""File, note, note category and document chunk ORM models.

File and note rows are either project-linked (shared with the tenant) or
personal (project_id is null, owned by the uploader / author).
"""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TenantMixin,
    TimestampMixin,
)


class File(CuidMixin, TimestampMixin, Base):
    """Uploaded file metadata (object lives in external storage). Table: file."""

    __tablename__ = "file"

    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True, index=True
    )
    uploaded_by_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    bucket: Mapped[str] = mapped_column(String, nullable=False)
    key: Mapped[str] = mapped_column(String, nullable=False)
    url: Mapped[str | None] = mapped_column(String, nullable=True)

    project = relationship("Project")


class Note(CuidMixin, TimestampMixin, Base):
    """Project or personal note. Table: note."""

    __tablename__ = "note"

    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )
    created_by_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    project = relationship("Project")

    __table_args__ = (Index("ix_note_project_created", "project_id", "created_at"),)


class NoteCategory(MultiTenantModel, Base):
    """Tenant-wide note category. Table: note_category."""

    __tablename__ = "note_category"

    name: Mapped[str] = mapped_column(String, nullable=False)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)

    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_note_category_slug"),)


class DocumentChunk(CuidMixin, TenantMixin, CreatedAtMixin, Base):
    """Text chunk extracted from a file for retrieval. Table: document_chunk."""

    __tablename__ = "document_chunk"

    file_id: Mapped[str] = mapped_column(
        String, ForeignKey("file.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
