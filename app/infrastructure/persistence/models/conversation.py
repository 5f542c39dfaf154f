"""AI conversation, message and AI message ORM models."""

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.enums import ConversationType
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)


class Conversation(CuidMixin, TimestampMixin, Base):
    """AI conversation: personal (no project) or project-bound. Table: conversation."""

    __tablename__ = "conversation"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )
    type: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ConversationType.PERSONAL.value
    )
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    project = relationship("Project")
    user = relationship("User")


class Message(CuidMixin, CreatedAtMixin, Base):
    """Message inside a conversation. Scoped via its conversation. Table: message."""

    __tablename__ = "message"

    conversation_id: Mapped[str] = mapped_column(
        String, ForeignKey("conversation.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    conversation = relationship("Conversation")


class AIMessage(CuidMixin, CreatedAtMixin, Base):
    """Assistant message addressed to a user inside a project. Table: ai_message."""

    __tablename__ = "ai_message"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    direction: Mapped[str] = mapped_column(String(16), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    project = relationship("Project")
