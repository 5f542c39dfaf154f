"""Query interception that keeps every call of a scoped client inside its scope."""

import logging
from typing import Any

from app.domain.enums import EntityType
from app.infrastructure.persistence.client import Proceed, QueryArgs, QueryExtension
from app.infrastructure.persistence.operations import Operation
from app.infrastructure.persistence.scoping.rules import ScopingRegistry

logger = logging.getLogger(__name__)


class ScopingExtension(QueryExtension):
    """Rewrites arguments with the entity's strategy before the call reaches storage.

    Raises nothing of its own: storage errors (not found, constraint
    violations) reach the caller unchanged.
    """

    def __init__(self, registry: ScopingRegistry, scope: str) -> None:
        self.registry = registry
        self.scope = scope

    def __repr__(self) -> str:
        return f"<ScopingExtension {self.registry.kind}={self.scope}>"

    def handles(self, entity: EntityType, operation: Operation) -> bool:
        return entity in self.registry

    async def intercept(
        self,
        entity: EntityType,
        operation: Operation,
        args: QueryArgs,
        proceed: Proceed,
    ) -> Any:
        strategy = self.registry[entity]
        rewritten = strategy.rewrite(operation, args, self.scope)
        logger.debug(
            "Scoped %s.%s to %s %s", entity.value, operation.value, self.registry.kind, self.scope
        )
        return await proceed(rewritten)
