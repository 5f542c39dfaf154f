"""Post-commit emission through scoped clients (scenarios with a recording publisher)."""

import logging
from typing import Any

import pytest

from app.domain.exceptions import RecordNotFoundError
from app.infrastructure.persistence.client import DataClient
from app.infrastructure.persistence.scoped_clients import ScopedClientFactory
from app.infrastructure.realtime.emit_context import EmitContext, PersonalEmitContext
from app.infrastructure.realtime.emitter import EventDispatcher
from tests.fakes import FailingPublisher, RecordingPublisher, invitation_data


@pytest.fixture
async def task(platform_client: DataClient, world):
    return await platform_client.task.create({"project_id": world.project_a, "title": "Tile backsplash"})


async def test_task_update_publishes_to_project(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world, task
) -> None:
    ctx = EmitContext(actor_user_id=world.alice, project_id=world.project_a)
    db = factory.tenant_client(world.tenant_a, ctx)

    updated = await db.task.update({"id": task.id}, {"status": "in_progress"})
    await dispatcher.drain()

    assert updated.status == "in_progress"
    assert publisher.published == [
        (
            "task:updated",
            f"project:{world.project_a}",
            {"projectId": world.project_a, "taskId": task.id, "actorUserId": world.alice},
        )
    ]


async def test_skip_emit_same_row_no_events(
    factory: ScopedClientFactory,
    dispatcher: EventDispatcher,
    publisher: RecordingPublisher,
    platform_client: DataClient,
    world,
    task,
) -> None:
    ctx = EmitContext(actor_user_id=world.alice, project_id=world.project_a, skip_emit=True)
    db = factory.tenant_client(world.tenant_a, ctx)

    await db.task.update({"id": task.id}, {"status": "in_progress"})
    await dispatcher.drain()

    assert publisher.published == []
    stored = await platform_client.task.find_unique({"id": task.id})
    assert stored.status == "in_progress"


async def test_no_context_no_events(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world, task
) -> None:
    await factory.tenant_client(world.tenant_a).task.update({"id": task.id}, {"status": "done"})
    await dispatcher.drain()
    assert publisher.published == []


async def test_comment_without_project_warns_and_succeeds(
    factory: ScopedClientFactory,
    dispatcher: EventDispatcher,
    publisher: RecordingPublisher,
    platform_client: DataClient,
    world,
    task,
    caplog: pytest.LogCaptureFixture,
) -> None:
    db = factory.tenant_client(world.tenant_a, EmitContext(actor_user_id=world.bob))

    with caplog.at_level(logging.WARNING, logger="app.infrastructure.realtime.emitter"):
        comment = await db.comment.create({"task_id": task.id, "author_id": world.bob, "content": "Grout?"})
    await dispatcher.drain()

    assert await platform_client.comment.find_unique({"id": comment.id}) is not None
    assert publisher.published == []
    assert any("comment.create" in r.getMessage() for r in caplog.records)


async def test_membership_delete_publishes_to_tenant(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    db = factory.tenant_client(world.tenant_a, EmitContext(actor_user_id=world.alice))

    deleted = await db.membership.delete({"id": world.membership_bob})
    await dispatcher.drain()

    assert deleted.id == world.membership_bob
    assert publisher.published == [
        (
            "membership:deleted",
            f"tenant:{world.tenant_a}",
            {
                "tenantId": world.tenant_a,
                "membershipId": world.membership_bob,
                "userId": world.bob,
                "role": "worker",
                "actorUserId": world.alice,
            },
        )
    ]


async def test_spoofed_context_tenant_replaced(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    ctx = EmitContext(actor_user_id=world.alice, tenant_id=world.tenant_b)
    db = factory.tenant_client(world.tenant_a, ctx)

    await db.project.update({"id": world.project_a}, {"status": "paused"})
    await db.note_category.create({"name": "Site", "slug": "site"})
    await dispatcher.drain()

    assert [channel for _, channel, _ in publisher.published] == [f"tenant:{world.tenant_a}"] * 2
    assert publisher.published[0][2] == {
        "projectId": world.project_a,
        "actorUserId": world.alice,
        "newStatus": "paused",
    }


async def test_exactly_one_event_per_write(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    ctx = EmitContext(actor_user_id=world.alice, project_id=world.project_a)
    db = factory.tenant_client(world.tenant_a, ctx)

    task = await db.task.create({"project_id": world.project_a, "title": "a"})
    await db.task.upsert({"id": task.id}, create={"project_id": world.project_a, "title": "a"}, update={"title": "b"})
    await db.task.delete({"id": task.id})
    await db.project.create({"name": "No create event"})
    await db.invitation.create(invitation_data(world.alice))
    await db.task.create_many([{"project_id": world.project_a, "title": "batch"}])
    await dispatcher.drain()

    assert publisher.events() == [
        "task:created",
        "task:updated",
        "task:deleted",
        "invitation:created",
    ]


async def test_personal_writes_go_to_user_channel(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    db = factory.user_client(world.bob, PersonalEmitContext(project_id=world.project_a))

    note = await db.note.create({"title": "Mine", "content": "c"})
    file = await db.file.create(
        {"name": "plan.pdf", "type": "application/pdf", "size": 10, "bucket": "b", "key": "k"}
    )
    await dispatcher.drain()

    assert publisher.published[0] == (
        "note:created",
        f"user:{world.bob}",
        {"noteId": note.id, "projectId": None, "title": "Mine", "category": None, "createdById": world.bob},
    )
    name, channel, payload = publisher.published[1]
    assert (name, channel) == ("file:created", f"user:{world.bob}")
    assert payload["actorUserId"] == world.bob
    assert payload["fileId"] == file.id


async def test_user_client_actor_cannot_be_spoofed(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    db = factory.user_client(world.bob, EmitContext(actor_user_id=world.alice))
    await db.file.create({"name": "x", "type": "t", "size": 1, "bucket": "b", "key": "k"})
    await dispatcher.drain()
    assert publisher.published[0][2]["actorUserId"] == world.bob


async def test_notification_new(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    db = factory.tenant_client(world.tenant_a, EmitContext(actor_user_id=world.alice))

    notification = await db.notification.create(
        {"user_id": world.bob, "project_id": world.project_a, "title": "Assigned", "body": "You have a task"}
    )
    await db.notification.update_many({"id": notification.id}, {"read": True})
    await dispatcher.drain()

    assert len(publisher.published) == 1
    name, channel, payload = publisher.published[0]
    assert (name, channel) == ("notification:new", f"user:{world.bob}")
    assert payload["id"] == notification.id
    assert payload["read"] is False
    assert payload["projectId"] == world.project_a
    assert payload["createdAt"].endswith("+00:00")


async def test_failed_write_emits_nothing(
    factory: ScopedClientFactory, dispatcher: EventDispatcher, publisher: RecordingPublisher, world
) -> None:
    db = factory.tenant_client(world.tenant_b, EmitContext(actor_user_id=world.carol))
    with pytest.raises(RecordNotFoundError):
        await db.membership.delete({"id": world.membership_bob})
    await dispatcher.drain()
    assert publisher.published == []


async def test_transport_failure_never_fails_write(
    platform_client: DataClient, world, task, caplog: pytest.LogCaptureFixture
) -> None:
    dispatcher = EventDispatcher(FailingPublisher())
    factory = ScopedClientFactory(platform_client, dispatcher)
    db = factory.tenant_client(world.tenant_a, EmitContext(actor_user_id=world.alice, project_id=world.project_a))

    with caplog.at_level(logging.ERROR):
        updated = await db.task.update({"id": task.id}, {"status": "done"})
        await dispatcher.drain()

    assert updated.status == "done"
    assert any("Realtime publish failed" in r.getMessage() for r in caplog.records)


async def test_subscriber_sees_committed_write(platform_client: DataClient, world, task) -> None:
    """A subscriber re-reading the entity when the event arrives observes the write."""
    observed: list[Any] = []

    class RereadingPublisher:
        async def publish(self, event_name: str, channel: str, payload: dict) -> bool:
            fresh = await platform_client.task.find_unique({"id": payload["taskId"]})
            observed.append(fresh.status)
            return True

    dispatcher = EventDispatcher(RereadingPublisher())
    factory = ScopedClientFactory(platform_client, dispatcher)
    db = factory.tenant_client(world.tenant_a, EmitContext(actor_user_id=world.alice))

    await db.task.update({"id": task.id}, {"status": "done"})
    await dispatcher.drain()

    assert observed == ["done"]
