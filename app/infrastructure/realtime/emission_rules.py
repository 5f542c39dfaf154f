"""Emission rules: which writes publish realtime events, where, and with what payload.

A rule per emission-eligible entity type gives the event name for each
write kind, resolves the target channel from the emit context and the
written record, and projects a small camelCase payload. A resolver that
returns None means the event cannot be addressed and nothing is published.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from app.domain.enums import EntityType
from app.infrastructure.persistence.operations import Operation
from app.infrastructure.realtime.channels import project_channel, tenant_channel, user_channel
from app.infrastructure.realtime.emit_context import EmitContext
from app.shared.utils.datetime import ensure_utc, utc_now

ChannelResolver = Callable[[EmitContext, Any], str | None]
PayloadBuilder = Callable[[EmitContext, Any], dict[str, Any]]


class WriteKind(str, Enum):
    """Write outcome used in event names."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


_WRITE_KINDS = MappingProxyType(
    {
        Operation.CREATE: WriteKind.CREATED,
        Operation.UPDATE: WriteKind.UPDATED,
        Operation.UPSERT: WriteKind.UPDATED,
        Operation.DELETE: WriteKind.DELETED,
    }
)

# Single-record writes; batch writes return counts and never emit.
EMITTING_OPERATIONS = frozenset(_WRITE_KINDS)


def normalize_operation(operation: Operation) -> WriteKind | None:
    """Map a data client operation to its write kind (upsert counts as an update)."""
    return _WRITE_KINDS.get(operation)


@dataclass(frozen=True)
class EmissionRule:
    """How one entity type turns a committed write into an event.

    Attributes:
        wire_name: Entity name used in event names (``timeEntry``).
        resolve_channel: (context, record) -> channel, or None to suppress.
        build_payload: (context, record) -> JSON-serializable dict.
        kinds: Write kinds that emit at all.
        event_names: Per-kind overrides of ``{wire_name}:{kind}``.
    """

    wire_name: str
    resolve_channel: ChannelResolver
    build_payload: PayloadBuilder
    kinds: frozenset[WriteKind] = frozenset(WriteKind)
    event_names: Mapping[WriteKind, str] = field(default_factory=dict)

    def event_name_of(self, kind: WriteKind) -> str | None:
        if kind not in self.kinds:
            return None
        return self.event_names.get(kind, f"{self.wire_name}:{kind.value}")


# ---- channel resolvers ----


def _context_or_record_project(context: EmitContext, record: Any) -> str | None:
    project_id = context.project_id or getattr(record, "project_id", None)
    return project_channel(project_id) if project_id else None


def _context_project(context: EmitContext, record: Any) -> str | None:
    return project_channel(context.project_id) if context.project_id else None


def _context_tenant(context: EmitContext, record: Any) -> str | None:
    return tenant_channel(context.tenant_id) if context.tenant_id else None


def _context_or_record_tenant(context: EmitContext, record: Any) -> str | None:
    tenant_id = context.tenant_id or getattr(record, "tenant_id", None)
    return tenant_channel(tenant_id) if tenant_id else None


def _file_channel(context: EmitContext, record: Any) -> str | None:
    if record.project_id:
        return project_channel(record.project_id)
    return user_channel(context.actor_user_id)


def _note_author(context: EmitContext, record: Any) -> str:
    return record.created_by_id or context.actor_user_id


def _note_channel(context: EmitContext, record: Any) -> str | None:
    if record.project_id:
        return project_channel(record.project_id)
    return user_channel(_note_author(context, record))


def _notification_channel(context: EmitContext, record: Any) -> str | None:
    return user_channel(record.user_id) if record.user_id else None


# ---- payload builders ----


def _task_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "projectId": context.project_id or record.project_id,
        "taskId": record.id,
        "actorUserId": context.actor_user_id,
    }


def _file_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "projectId": record.project_id or None,
        "fileId": record.id,
        "actorUserId": context.actor_user_id,
        "fileName": record.name,
        "url": record.url,
    }


def _note_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "noteId": record.id,
        "projectId": record.project_id or None,
        "title": record.title,
        "category": record.category,
        "createdById": _note_author(context, record),
    }


def _comment_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "projectId": context.project_id,
        "commentId": record.id,
        "taskId": record.task_id,
        "actorUserId": context.actor_user_id,
    }


def _time_entry_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "projectId": context.project_id or record.project_id,
        "timeEntryId": record.id,
        "actorUserId": context.actor_user_id,
    }


def _notification_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    created_at = ensure_utc(record.created_at) or utc_now()
    return {
        "id": record.id,
        "title": record.title,
        "body": record.body,
        "read": record.read,
        "createdAt": created_at.isoformat(),
        "projectId": record.project_id or None,
    }


def _note_category_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "categoryId": record.id,
        "name": record.name,
        "slug": record.slug,
        "color": record.color,
    }


def _project_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    payload = {"projectId": record.id, "actorUserId": context.actor_user_id}
    if record.status:
        payload["newStatus"] = record.status
    return payload


def _membership_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "tenantId": context.tenant_id or record.tenant_id,
        "membershipId": record.id,
        "userId": record.user_id,
        "role": record.role,
        "actorUserId": context.actor_user_id,
    }


def _invitation_payload(context: EmitContext, record: Any) -> dict[str, Any]:
    return {
        "tenantId": context.tenant_id or record.tenant_id,
        "invitationId": record.id,
        "email": record.email,
        "role": record.role,
        "status": record.status,
        "actorUserId": context.actor_user_id,
    }


EMISSION_RULES: Mapping[EntityType, EmissionRule] = MappingProxyType(
    {
        EntityType.TASK: EmissionRule("task", _context_or_record_project, _task_payload),
        EntityType.FILE: EmissionRule("file", _file_channel, _file_payload),
        EntityType.NOTE: EmissionRule("note", _note_channel, _note_payload),
        EntityType.COMMENT: EmissionRule("comment", _context_project, _comment_payload),
        EntityType.TIME_ENTRY: EmissionRule(
            "timeEntry", _context_or_record_project, _time_entry_payload
        ),
        EntityType.NOTIFICATION: EmissionRule(
            "notification",
            _notification_channel,
            _notification_payload,
            kinds=frozenset({WriteKind.CREATED}),
            event_names=MappingProxyType({WriteKind.CREATED: "notification:new"}),
        ),
        EntityType.NOTE_CATEGORY: EmissionRule(
            "noteCategory", _context_tenant, _note_category_payload
        ),
        EntityType.PROJECT: EmissionRule(
            "project",
            _context_tenant,
            _project_payload,
            kinds=frozenset({WriteKind.UPDATED}),
        ),
        EntityType.MEMBERSHIP: EmissionRule(
            "membership", _context_or_record_tenant, _membership_payload
        ),
        EntityType.INVITATION: EmissionRule(
            "invitation", _context_or_record_tenant, _invitation_payload
        ),
    }
)
