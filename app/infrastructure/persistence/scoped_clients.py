"""Tenant- and user-scoped data clients.

A ScopedClientFactory is built once at startup from the platform (unscoped)
DataClient and the event dispatcher, then registered with set_client_factory.
Request code asks for clients through tenant_scoped_client / user_scoped_client:

    db = tenant_scoped_client(tenant_id, EmitContext(actor_user_id=user_id, project_id=pid))
    task = await db.task.update({"id": task_id}, {"status": "done"})

Scoped clients only expose entity types that have a scoping rule; anything
else raises EntityNotExposedError on attribute access.
"""

from __future__ import annotations

import logging

from app.domain.enums import EntityType
from app.domain.exceptions import ClientFactoryNotConfiguredError, EntityNotExposedError
from app.infrastructure.persistence.client import DataClient, ModelDelegate
from app.infrastructure.persistence.scoping import (
    TENANT_SCOPING_RULES,
    USER_SCOPING_RULES,
    ScopingExtension,
    ScopingRegistry,
)
from app.infrastructure.realtime.emit_context import EmitContext, PersonalEmitContext
from app.infrastructure.realtime.emitter import EventDispatcher, EventEmissionExtension

logger = logging.getLogger(__name__)


class ScopedClient:
    """Data client bound to one tenant or one user.

    Attributes:
        scope: Bound tenant id or user id.
        registry: Scoping rules deciding which entity types are exposed.
    """

    def __init__(self, client: DataClient, registry: ScopingRegistry, scope: str) -> None:
        self._client = client
        self.registry = registry
        self.scope = scope

    def __repr__(self) -> str:
        return f"<ScopedClient {self.registry.kind}={self.scope}>"

    @property
    def exposed_entities(self) -> frozenset[EntityType]:
        return frozenset(self.registry)

    def delegate(self, entity: EntityType) -> ModelDelegate:
        if entity not in self.registry:
            raise EntityNotExposedError(entity.value, self.registry.kind)
        return self._client.delegate(entity)

    def __getattr__(self, name: str) -> ModelDelegate:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            entity = EntityType(name)
        except ValueError:
            raise EntityNotExposedError(name, self.registry.kind) from None
        return self.delegate(entity)


class ScopedClientFactory:
    """Builds scoped clients over one platform client and one event dispatcher."""

    def __init__(
        self,
        platform_client: DataClient,
        dispatcher: EventDispatcher,
        *,
        tenant_rules: ScopingRegistry = TENANT_SCOPING_RULES,
        user_rules: ScopingRegistry = USER_SCOPING_RULES,
    ) -> None:
        self.platform_client = platform_client
        self.dispatcher = dispatcher
        self.tenant_rules = tenant_rules
        self.user_rules = user_rules

    def _with_emission(self, client: DataClient, context: EmitContext | None) -> DataClient:
        if context is None or context.skip_emit:
            return client
        return client.extend(EventEmissionExtension(context, self.dispatcher))

    def tenant_client(self, tenant_id: str, emit_context: EmitContext | None = None) -> ScopedClient:
        """Client restricted to tenant_id; writes emit events when emit_context is given."""
        if not tenant_id:
            raise ValueError("tenant_id is required")
        client = self.platform_client.extend(ScopingExtension(self.tenant_rules, tenant_id))
        if emit_context is not None:
            emit_context = emit_context.bound_to_tenant(tenant_id)
        return ScopedClient(self._with_emission(client, emit_context), self.tenant_rules, tenant_id)

    def user_client(
        self,
        user_id: str,
        emit_context: PersonalEmitContext | EmitContext | None = None,
    ) -> ScopedClient:
        """Client restricted to user_id's personal rows; the event actor is always user_id."""
        if not user_id:
            raise ValueError("user_id is required")
        client = self.platform_client.extend(ScopingExtension(self.user_rules, user_id))
        context: EmitContext | None = None
        if isinstance(emit_context, PersonalEmitContext):
            context = emit_context.for_actor(user_id)
        elif emit_context is not None:
            context = EmitContext(
                actor_user_id=user_id,
                project_id=emit_context.project_id,
                skip_emit=emit_context.skip_emit,
            )
        return ScopedClient(self._with_emission(client, context), self.user_rules, user_id)


_factory: ScopedClientFactory | None = None


def get_client_factory() -> ScopedClientFactory:
    """Return the factory registered at startup."""
    if _factory is None:
        raise ClientFactoryNotConfiguredError()
    return _factory


def set_client_factory(factory: ScopedClientFactory | None) -> None:
    """Register (or with None, clear) the process factory. Called from lifespan."""
    global _factory
    _factory = factory


def tenant_scoped_client(tenant_id: str, emit_context: EmitContext | None = None) -> ScopedClient:
    return get_client_factory().tenant_client(tenant_id, emit_context)


def user_scoped_client(
    user_id: str, emit_context: PersonalEmitContext | EmitContext | None = None
) -> ScopedClient:
    return get_client_factory().user_client(user_id, emit_context)
