"""Channel-keyed WebSocket connections: the delivery end of realtime events."""

from app.api.websocket.manager import ConnectionManager

__all__ = ["ConnectionManager"]
