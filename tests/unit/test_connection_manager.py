"""Tests for the channel-keyed WebSocket connection manager."""

from typing import Any

from app.api.websocket.manager import ConnectionManager


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.accepted = False
        self.sent: list[Any] = []
        self.fail = fail

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


async def test_broadcast_reaches_only_channel_members() -> None:
    manager = ConnectionManager()
    a, b = FakeWebSocket(), FakeWebSocket()
    await manager.connect(a, ["tenant:t1", "user:u1"])
    await manager.connect(b, ["tenant:t2", "user:u2"])

    delivered = await manager.broadcast_to_channel("tenant:t1", {"event": "x"})

    assert delivered == 1
    assert a.accepted and b.accepted
    assert a.sent == [{"event": "x"}]
    assert b.sent == []


async def test_join_and_leave() -> None:
    manager = ConnectionManager()
    ws = FakeWebSocket()
    await manager.connect(ws, ["tenant:t1"])
    await manager.join(ws, "project:p1")
    assert await manager.channels_of(ws) == frozenset({"tenant:t1", "project:p1"})
    assert await manager.get_connection_count("project:p1") == 1

    await manager.leave(ws, "project:p1")
    await manager.broadcast_to_channel("project:p1", "hello")
    assert ws.sent == []
    assert await manager.get_connection_count("project:p1") == 0


async def test_disconnect_removes_from_all_channels() -> None:
    manager = ConnectionManager()
    ws = FakeWebSocket()
    await manager.connect(ws, ["tenant:t1", "user:u1"])
    assert await manager.get_connection_count() == 1

    await manager.disconnect(ws)

    assert await manager.get_connection_count() == 0
    assert await manager.get_connection_count("tenant:t1") == 0


async def test_dead_connection_dropped_on_send() -> None:
    manager = ConnectionManager()
    dead, alive = FakeWebSocket(fail=True), FakeWebSocket()
    await manager.connect(dead, ["project:p1"])
    await manager.connect(alive, ["project:p1"])

    delivered = await manager.broadcast_to_channel("project:p1", {"event": "task:created"})

    assert delivered == 1
    assert await manager.get_connection_count() == 1
    assert await manager.channels_of(dead) == frozenset()
