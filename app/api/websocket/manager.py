"""WebSocket connection manager.

Holds active connections grouped by realtime channel (tenant:<id>,
user:<id>, project:<id>) and broadcasts to one channel at a time.
Use via app.state.ws_manager (set in lifespan).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections by channel.

    - A connection can be joined to any number of channels.
    - Broadcast goes to the connections joined to one channel only.
    - Membership maps are lock-protected for concurrent access.
    """

    def __init__(self) -> None:
        """Initialize with empty channel maps."""
        self._connections_by_channel: dict[str, set[WebSocket]] = {}
        self._channels_by_websocket: dict[WebSocket, set[str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, channels: Iterable[str] = ()) -> None:
        """Accept a connection and join it to the given channels.

        Args:
            websocket: The WebSocket instance to accept and track.
            channels: Initial channels (the caller's tenant and user channels).
        """
        await websocket.accept()
        async with self._lock:
            self._channels_by_websocket.setdefault(websocket, set())
            for channel in channels:
                self._join_locked(websocket, channel)

    def _join_locked(self, websocket: WebSocket, channel: str) -> None:
        self._connections_by_channel.setdefault(channel, set()).add(websocket)
        self._channels_by_websocket.setdefault(websocket, set()).add(channel)

    def _leave_locked(self, websocket: WebSocket, channel: str) -> None:
        conns = self._connections_by_channel.get(channel)
        if conns is not None:
            conns.discard(websocket)
            if not conns:
                del self._connections_by_channel[channel]
        joined = self._channels_by_websocket.get(websocket)
        if joined is not None:
            joined.discard(channel)

    async def join(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._join_locked(websocket, channel)

    async def leave(self, websocket: WebSocket, channel: str) -> None:
        async with self._lock:
            self._leave_locked(websocket, channel)

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection from every channel (call on disconnect)."""
        async with self._lock:
            self._drop_locked(websocket)

    def _drop_locked(self, websocket: WebSocket) -> None:
        for channel in list(self._channels_by_websocket.pop(websocket, ())):
            conns = self._connections_by_channel.get(channel)
            if conns is not None:
                conns.discard(websocket)
                if not conns:
                    del self._connections_by_channel[channel]

    async def channels_of(self, websocket: WebSocket) -> frozenset[str]:
        async with self._lock:
            return frozenset(self._channels_by_websocket.get(websocket, ()))

    async def broadcast_to_channel(self, channel: str, message: str | dict[str, Any]) -> int:
        """Send a message to every connection joined to channel.

        Args:
            channel: Target channel.
            message: String or JSON-serializable dict to send.

        Returns:
            Number of connections the message was delivered to.
        """
        async with self._lock:
            snapshot = list(self._connections_by_channel.get(channel, ()))
        return await self._send_to_list(snapshot, message)

    async def _send_to_list(
        self,
        connections: list[WebSocket],
        message: str | dict[str, Any],
    ) -> int:
        """Send message to a list of connections; remove dead ones under lock."""
        dead: list[WebSocket] = []
        for ws in connections:
            try:
                if isinstance(message, dict):
                    await ws.send_json(message)
                else:
                    await ws.send_text(message)
            except Exception:
                logger.debug("Dropping dead WebSocket connection", exc_info=True)
                dead.append(ws)
        if dead:
            async with self._lock:
                for ws in dead:
                    self._drop_locked(ws)
        return len(connections) - len(dead)

    async def get_connection_count(self, channel: str | None = None) -> int:
        """Return active connections, overall or in one channel (lock-safe)."""
        async with self._lock:
            if channel is not None:
                return len(self._connections_by_channel.get(channel, ()))
            return len(self._channels_by_websocket)
