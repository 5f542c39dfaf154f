"""Per-call emit context: who is acting and where events should go."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class EmitContext:
    """Actor and scope hints for events produced by one logical operation.

    Attributes:
        actor_user_id: User performing the operation (actorUserId in payloads).
        project_id: Project hint for project-scoped entities (tasks, comments, time entries).
        tenant_id: Filled in by the tenant client factory from its bound tenant;
            any value set by the caller is replaced.
        skip_emit: When True, writes through the client publish nothing.
    """

    actor_user_id: str
    project_id: str | None = None
    tenant_id: str | None = None
    skip_emit: bool = False

    def __post_init__(self) -> None:
        if not self.actor_user_id:
            raise ValueError("EmitContext.actor_user_id is required")

    def bound_to_tenant(self, tenant_id: str) -> EmitContext:
        """Return a copy whose tenant_id is the given bound tenant."""
        return replace(self, tenant_id=tenant_id)


@dataclass(frozen=True)
class PersonalEmitContext:
    """Emit context for user-scoped clients: the actor is always the bound user."""

    project_id: str | None = None
    skip_emit: bool = False

    def for_actor(self, user_id: str) -> EmitContext:
        return EmitContext(
            actor_user_id=user_id,
            project_id=self.project_id,
            skip_emit=self.skip_emit,
        )
