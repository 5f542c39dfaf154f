"""Post-commit event emission for scoped clients.

EventEmissionExtension sits on a scoped client. After a write has committed
it turns the written record into a PendingEvent using the emission rules
and hands it to the EventDispatcher, which publishes in the background.
Nothing on the emission path can change the outcome of the write: every
failure is logged and dropped (at-most-once delivery, no retry).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.enums import EntityType
from app.infrastructure.persistence.client import Proceed, QueryArgs, QueryExtension
from app.infrastructure.persistence.operations import Operation
from app.infrastructure.realtime.emission_rules import (
    EMISSION_RULES,
    EMITTING_OPERATIONS,
    EmissionRule,
    normalize_operation,
)
from app.infrastructure.realtime.emit_context import EmitContext

if TYPE_CHECKING:
    from app.infrastructure.realtime.publisher import RealtimePublisher

logger = logging.getLogger(__name__)

DEFAULT_PUBLISH_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class PendingEvent:
    """An addressed event waiting to be published.

    entity, operation and record_id are carried for log context only.
    """

    name: str
    channel: str
    payload: dict[str, Any]
    entity: str = ""
    operation: str = ""
    record_id: str | None = field(default=None)


class EventDispatcher:
    """Publishes pending events on background tasks.

    dispatch() returns immediately; the publish runs with a timeout and any
    failure is logged. drain() waits for in-flight publishes (shutdown, tests).
    With no publisher configured events are dropped at debug level.
    """

    def __init__(
        self,
        publisher: RealtimePublisher | None = None,
        *,
        timeout_seconds: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS,
    ) -> None:
        self._publisher = publisher
        self._timeout = timeout_seconds
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def publisher(self) -> RealtimePublisher | None:
        return self._publisher

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, event: PendingEvent) -> None:
        if self._publisher is None:
            logger.debug("No realtime publisher, dropping %s for %s", event.name, event.channel)
            return
        task = asyncio.get_running_loop().create_task(self._publish(self._publisher, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _publish(self, publisher: RealtimePublisher, event: PendingEvent) -> None:
        try:
            delivered = await asyncio.wait_for(
                publisher.publish(event.name, event.channel, event.payload),
                timeout=self._timeout,
            )
        except TimeoutError:
            logger.warning(
                "Realtime publish timed out after %.1fs: %s to %s (%s.%s id=%s)",
                self._timeout,
                event.name,
                event.channel,
                event.entity,
                event.operation,
                event.record_id,
            )
        except Exception:
            logger.exception(
                "Realtime publish failed: %s to %s (%s.%s id=%s)",
                event.name,
                event.channel,
                event.entity,
                event.operation,
                event.record_id,
            )
        else:
            if delivered is False:
                logger.warning(
                    "Realtime transport unavailable, dropped %s to %s (%s.%s id=%s)",
                    event.name,
                    event.channel,
                    event.entity,
                    event.operation,
                    event.record_id,
                )

    async def drain(self) -> None:
        """Wait until every dispatched publish has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class EventEmissionExtension(QueryExtension):
    """Publishes an event after each successful single-record write on an eligible entity."""

    def __init__(
        self,
        context: EmitContext,
        dispatcher: EventDispatcher,
        rules: Mapping[EntityType, EmissionRule] = EMISSION_RULES,
    ) -> None:
        self.context = context
        self.dispatcher = dispatcher
        self.rules = rules

    def handles(self, entity: EntityType, operation: Operation) -> bool:
        return entity in self.rules and operation in EMITTING_OPERATIONS

    async def intercept(
        self,
        entity: EntityType,
        operation: Operation,
        args: QueryArgs,
        proceed: Proceed,
    ) -> Any:
        record = await proceed(args)
        if self.context.skip_emit:
            return record
        try:
            event = self.pending_event(entity, operation, record)
            if event is not None:
                self.dispatcher.dispatch(event)
        except Exception:
            logger.warning(
                "Failed to emit for %s.%s (id=%s)",
                entity.value,
                operation.value,
                getattr(record, "id", None),
                exc_info=True,
            )
        return record

    def pending_event(
        self, entity: EntityType, operation: Operation, record: Any
    ) -> PendingEvent | None:
        """Resolve the event for a committed write, or None when nothing should be published."""
        rule = self.rules.get(entity)
        kind = normalize_operation(operation)
        if rule is None or kind is None:
            return None
        name = rule.event_name_of(kind)
        if name is None:
            return None
        record_id = getattr(record, "id", None)
        channel = rule.resolve_channel(self.context, record)
        if channel is None:
            logger.warning(
                "Emit skipped for %s.%s (id=%s): no channel could be resolved",
                entity.value,
                operation.value,
                record_id,
            )
            return None
        return PendingEvent(
            name=name,
            channel=channel,
            payload=rule.build_payload(self.context, record),
            entity=entity.value,
            operation=operation.value,
            record_id=record_id,
        )
