"""E-mail conversation and e-mail message ORM models."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
)


class EmailConversation(MultiTenantModel, Base):
    """Thread of e-mails exchanged with an external contact. Table: email_conversation."""

    __tablename__ = "email_conversation"

    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="SET NULL"), nullable=True
    )
    subject: Mapped[str] = mapped_column(String, nullable=False)
    contact_email: Mapped[str] = mapped_column(String, nullable=False, index=True)


class EmailMessage(CuidMixin, CreatedAtMixin, Base):
    """Single e-mail in a thread. Scoped via conversation. Table: email_message."""

    __tablename__ = "email_message"

    conversation_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("email_conversation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    direction: Mapped[str] = mapped_column(String(16), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    conversation = relationship("EmailConversation")
