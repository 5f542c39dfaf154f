"""Persistence models: ORM entities, mixins, and the entity-type → model registry."""

from collections.abc import Mapping
from types import MappingProxyType

from app.domain.enums import EntityType
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.automation import (
    Automation,
    AutomationLog,
    EmailTemplate,
)
from app.infrastructure.persistence.models.content import (
    DocumentChunk,
    File,
    Note,
    NoteCategory,
)
from app.infrastructure.persistence.models.conversation import (
    AIMessage,
    Conversation,
    Message,
)
from app.infrastructure.persistence.models.email import EmailConversation, EmailMessage
from app.infrastructure.persistence.models.membership import Invitation, Membership
from app.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    MultiTenantModel,
    TenantMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.notification import (
    Notification,
    NotificationPreference,
    PushSubscription,
)
from app.infrastructure.persistence.models.project import Project, ProjectMember
from app.infrastructure.persistence.models.task import (
    ActivityLog,
    Comment,
    Task,
    TaskAssignment,
    TimeEntry,
)
from app.infrastructure.persistence.models.tenant import Tenant, User

MODEL_REGISTRY: Mapping[EntityType, type[Base]] = MappingProxyType(
    {
        EntityType.TENANT: Tenant,
        EntityType.USER: User,
        EntityType.MEMBERSHIP: Membership,
        EntityType.INVITATION: Invitation,
        EntityType.PROJECT: Project,
        EntityType.PROJECT_MEMBER: ProjectMember,
        EntityType.TASK: Task,
        EntityType.TASK_ASSIGNMENT: TaskAssignment,
        EntityType.COMMENT: Comment,
        EntityType.ACTIVITY_LOG: ActivityLog,
        EntityType.TIME_ENTRY: TimeEntry,
        EntityType.FILE: File,
        EntityType.NOTE: Note,
        EntityType.NOTE_CATEGORY: NoteCategory,
        EntityType.DOCUMENT_CHUNK: DocumentChunk,
        EntityType.NOTIFICATION: Notification,
        EntityType.NOTIFICATION_PREFERENCE: NotificationPreference,
        EntityType.PUSH_SUBSCRIPTION: PushSubscription,
        EntityType.CONVERSATION: Conversation,
        EntityType.MESSAGE: Message,
        EntityType.AI_MESSAGE: AIMessage,
        EntityType.AUTOMATION: Automation,
        EntityType.AUTOMATION_LOG: AutomationLog,
        EntityType.EMAIL_TEMPLATE: EmailTemplate,
        EntityType.EMAIL_CONVERSATION: EmailConversation,
        EntityType.EMAIL_MESSAGE: EmailMessage,
    }
)

__all__ = [
    "MODEL_REGISTRY",
    "AIMessage",
    "ActivityLog",
    "Automation",
    "AutomationLog",
    "Comment",
    "Conversation",
    "DocumentChunk",
    "EmailConversation",
    "EmailMessage",
    "EmailTemplate",
    "File",
    "Invitation",
    "Membership",
    "Message",
    "Note",
    "NoteCategory",
    "Notification",
    "NotificationPreference",
    "Project",
    "ProjectMember",
    "PushSubscription",
    "Task",
    "TaskAssignment",
    "Tenant",
    "TimeEntry",
    "User",
    "CreatedAtMixin",
    "CuidMixin",
    "MultiTenantModel",
    "TenantMixin",
    "TimestampMixin",
]
