"""Scoping rule tables for tenant-scoped and user-scoped clients.

Each table maps an EntityType to exactly one strategy. An entity type that
is absent from a table is not exposed by clients built from it; it stays
reachable only through the unscoped platform client.
"""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from app.domain.enums import EntityType
from app.domain.exceptions import ScopingConfigurationError
from app.infrastructure.persistence.models import MODEL_REGISTRY
from app.infrastructure.persistence.scoping.strategies import (
    DirectColumn,
    OrCondition,
    PersonalOrShared,
    RelationPath,
    ScopingStrategy,
)


class ScopingRegistry(Mapping[EntityType, ScopingStrategy]):
    """Read-only EntityType -> ScopingStrategy table, validated against the ORM models.

    Attributes:
        kind: Scope kind the table serves ("tenant" or "user"); used in error messages.
    """

    def __init__(
        self,
        kind: str,
        rules: Mapping[EntityType, ScopingStrategy],
        models: Mapping[EntityType, type] = MODEL_REGISTRY,
    ) -> None:
        self.kind = kind
        self._rules = MappingProxyType(dict(rules))
        for entity, strategy in self._rules.items():
            model = models.get(entity)
            if model is None:
                raise ScopingConfigurationError(entity.value, "no model registered")
            strategy.validate(model, entity.value)

    def __getitem__(self, entity: EntityType) -> ScopingStrategy:
        return self._rules[entity]

    def __iter__(self) -> Iterator[EntityType]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"<ScopingRegistry {self.kind} ({len(self)} entities)>"


_PROJECT = RelationPath(("project",))

TENANT_SCOPING_RULES = ScopingRegistry(
    "tenant",
    {
        EntityType.PROJECT: DirectColumn(),
        EntityType.MEMBERSHIP: DirectColumn(),
        EntityType.INVITATION: DirectColumn(),
        EntityType.NOTE_CATEGORY: DirectColumn(),
        EntityType.TIME_ENTRY: DirectColumn(),
        EntityType.AUTOMATION: DirectColumn(),
        EntityType.NOTIFICATION_PREFERENCE: DirectColumn(),
        EntityType.PUSH_SUBSCRIPTION: DirectColumn(),
        EntityType.EMAIL_TEMPLATE: DirectColumn(),
        EntityType.EMAIL_CONVERSATION: DirectColumn(),
        EntityType.DOCUMENT_CHUNK: DirectColumn(),
        EntityType.TASK: _PROJECT,
        EntityType.ACTIVITY_LOG: _PROJECT,
        EntityType.PROJECT_MEMBER: _PROJECT,
        EntityType.AI_MESSAGE: _PROJECT,
        # Personal files and notes (no project) are reachable only through
        # the user client.
        EntityType.FILE: _PROJECT,
        EntityType.NOTE: _PROJECT,
        EntityType.COMMENT: RelationPath(("task", "project")),
        EntityType.TASK_ASSIGNMENT: RelationPath(("task", "project")),
        EntityType.AUTOMATION_LOG: RelationPath(("automation",)),
        EntityType.EMAIL_MESSAGE: RelationPath(("conversation",)),
        EntityType.CONVERSATION: OrCondition(
            linked_path=("project",), link_field="project_id", owner_relation="user"
        ),
        EntityType.NOTIFICATION: OrCondition(
            linked_path=("project",), link_field="project_id", owner_relation="user"
        ),
        EntityType.MESSAGE: OrCondition(
            linked_path=("project",),
            link_field="project_id",
            owner_relation="user",
            via="conversation",
        ),
    },
)

USER_SCOPING_RULES = ScopingRegistry(
    "user",
    {
        EntityType.FILE: PersonalOrShared(owner_field="uploaded_by_id"),
        EntityType.NOTE: PersonalOrShared(owner_field="created_by_id"),
        EntityType.CONVERSATION: PersonalOrShared(owner_field="user_id"),
        EntityType.MESSAGE: PersonalOrShared(owner_field="user_id", via="conversation"),
        EntityType.NOTIFICATION: DirectColumn("user_id"),
        EntityType.AI_MESSAGE: DirectColumn("user_id"),
    },
)
