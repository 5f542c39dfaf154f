"""Tests for EventEmissionExtension and EventDispatcher (no database)."""

import asyncio
import logging
from types import SimpleNamespace
from typing import Any

import pytest

from app.domain.enums import EntityType
from app.infrastructure.persistence.operations import Operation
from app.infrastructure.realtime.emit_context import EmitContext
from app.infrastructure.realtime.emitter import (
    EventDispatcher,
    EventEmissionExtension,
    PendingEvent,
)
from tests.fakes import FailingPublisher, HangingPublisher, RecordingPublisher

TASK = SimpleNamespace(id="k1", project_id="p1")


def _proceed(result: Any):
    calls: list[dict] = []

    async def proceed(args: dict) -> Any:
        calls.append(args)
        return result

    return proceed, calls


async def test_write_result_returned_and_event_dispatched() -> None:
    publisher = RecordingPublisher()
    dispatcher = EventDispatcher(publisher)
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1"), dispatcher)
    proceed, calls = _proceed(TASK)

    result = await ext.intercept(EntityType.TASK, Operation.UPDATE, {"where": {"id": "k1"}}, proceed)
    await dispatcher.drain()

    assert result is TASK
    assert calls == [{"where": {"id": "k1"}}]
    assert publisher.published == [
        ("task:updated", "project:p1", {"projectId": "p1", "taskId": "k1", "actorUserId": "a1"})
    ]


async def test_write_failure_propagates_without_event() -> None:
    publisher = RecordingPublisher()
    dispatcher = EventDispatcher(publisher)
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1"), dispatcher)

    async def proceed(args: dict) -> Any:
        raise RuntimeError("constraint violated")

    with pytest.raises(RuntimeError):
        await ext.intercept(EntityType.TASK, Operation.CREATE, {"data": {}}, proceed)
    await dispatcher.drain()
    assert publisher.published == []


async def test_skip_emit() -> None:
    publisher = RecordingPublisher()
    dispatcher = EventDispatcher(publisher)
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1", skip_emit=True), dispatcher)
    proceed, _ = _proceed(TASK)

    assert await ext.intercept(EntityType.TASK, Operation.UPDATE, {}, proceed) is TASK
    await dispatcher.drain()
    assert publisher.published == []


def test_handles_only_single_record_writes_on_rule_entities() -> None:
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1"), EventDispatcher())
    assert ext.handles(EntityType.TASK, Operation.UPSERT)
    assert not ext.handles(EntityType.TASK, Operation.UPDATE_MANY)
    assert not ext.handles(EntityType.TASK, Operation.FIND_MANY)
    assert not ext.handles(EntityType.ACTIVITY_LOG, Operation.CREATE)


async def test_unresolved_channel_warns_and_skips(caplog: pytest.LogCaptureFixture) -> None:
    publisher = RecordingPublisher()
    dispatcher = EventDispatcher(publisher)
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1"), dispatcher)
    comment = SimpleNamespace(id="c1", task_id="k1")
    proceed, _ = _proceed(comment)

    with caplog.at_level(logging.WARNING):
        result = await ext.intercept(EntityType.COMMENT, Operation.CREATE, {}, proceed)
    await dispatcher.drain()

    assert result is comment
    assert publisher.published == []
    assert any("comment.create" in r.getMessage() for r in caplog.records)


async def test_payload_error_is_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    """A record missing an attribute the payload needs fails emission, not the write."""
    publisher = RecordingPublisher()
    dispatcher = EventDispatcher(publisher)
    ext = EventEmissionExtension(EmitContext(actor_user_id="a1", tenant_id="t1"), dispatcher)
    broken = SimpleNamespace(id="m1")
    proceed, _ = _proceed(broken)

    with caplog.at_level(logging.WARNING):
        result = await ext.intercept(EntityType.MEMBERSHIP, Operation.DELETE, {}, proceed)
    await dispatcher.drain()

    assert result is broken
    assert publisher.published == []
    assert any("Failed to emit for membership.delete" in r.getMessage() for r in caplog.records)


async def test_publish_failure_logged(caplog: pytest.LogCaptureFixture) -> None:
    publisher = FailingPublisher()
    dispatcher = EventDispatcher(publisher)
    with caplog.at_level(logging.ERROR):
        dispatcher.dispatch(PendingEvent("task:created", "project:p1", {}, "task", "create", "k1"))
        await dispatcher.drain()
    assert publisher.attempts == 1
    assert any("Realtime publish failed" in r.getMessage() for r in caplog.records)


async def test_publish_timeout_logged(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = EventDispatcher(HangingPublisher(), timeout_seconds=0.01)
    with caplog.at_level(logging.WARNING):
        dispatcher.dispatch(PendingEvent("task:created", "project:p1", {}))
        await dispatcher.drain()
    assert dispatcher.in_flight == 0
    assert any("timed out" in r.getMessage() for r in caplog.records)


async def test_dispatch_does_not_wait_for_publish() -> None:
    release = asyncio.Event()
    published: list[str] = []

    class SlowPublisher:
        async def publish(self, event_name: str, channel: str, payload: dict) -> bool:
            await release.wait()
            published.append(event_name)
            return True

    dispatcher = EventDispatcher(SlowPublisher())
    dispatcher.dispatch(PendingEvent("task:created", "project:p1", {}))
    assert dispatcher.in_flight == 1
    assert published == []
    release.set()
    await dispatcher.drain()
    assert published == ["task:created"]


async def test_no_publisher_drops_silently() -> None:
    dispatcher = EventDispatcher(None)
    dispatcher.dispatch(PendingEvent("task:created", "project:p1", {}))
    assert dispatcher.in_flight == 0
