"""Domain enumerations for the collaboration backend.

Enums represent fixed sets of domain values (entity types exposed by the
data client, project and task lifecycles, tenant roles).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class EntityType(_ValuesMixin, str, Enum):
    """Entity types reachable through the data client.

    Member values double as the delegate attribute names on a client
    (``client.time_entry``).
    """

    TENANT = "tenant"
    USER = "user"
    MEMBERSHIP = "membership"
    INVITATION = "invitation"
    PROJECT = "project"
    PROJECT_MEMBER = "project_member"
    TASK = "task"
    TASK_ASSIGNMENT = "task_assignment"
    COMMENT = "comment"
    ACTIVITY_LOG = "activity_log"
    TIME_ENTRY = "time_entry"
    FILE = "file"
    NOTE = "note"
    NOTE_CATEGORY = "note_category"
    DOCUMENT_CHUNK = "document_chunk"
    NOTIFICATION = "notification"
    NOTIFICATION_PREFERENCE = "notification_preference"
    PUSH_SUBSCRIPTION = "push_subscription"
    CONVERSATION = "conversation"
    MESSAGE = "message"
    AI_MESSAGE = "ai_message"
    AUTOMATION = "automation"
    AUTOMATION_LOG = "automation_log"
    EMAIL_TEMPLATE = "email_template"
    EMAIL_CONVERSATION = "email_conversation"
    EMAIL_MESSAGE = "email_message"


class TenantRole(_ValuesMixin, str, Enum):
    """Role of a user inside a tenant (membership / invitation)."""

    OWNER = "owner"
    ADMIN = "admin"
    WORKER = "worker"


class InvitationStatus(_ValuesMixin, str, Enum):
    """Invitation lifecycle."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class ProjectStatus(_ValuesMixin, str, Enum):
    """Project lifecycle status."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(_ValuesMixin, str, Enum):
    """Task workflow status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class ConversationType(_ValuesMixin, str, Enum):
    """AI conversation kind: personal assistant or project-bound."""

    PERSONAL = "personal"
    PROJECT = "project"
