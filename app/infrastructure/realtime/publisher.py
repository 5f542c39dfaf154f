"""Realtime transports: where dispatched events go.

Writer processes publish onto a Redis bridge channel as JSON
``{"room", "eventName", "payload"}``; the socket-serving process runs
run_realtime_relay, which subscribes to that channel and forwards each
message to the websockets joined to the room. When writer and socket
server share a process, LocalRealtimePublisher skips Redis.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import redis.asyncio as redis

from app.core.config import Settings, get_settings
from app.infrastructure.realtime.channels import parse_channel
from app.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from app.api.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)


class RealtimePublisher(Protocol):
    """Transport handle: publish event_name with payload to channel.

    Returns False when the transport is unavailable. Raises on transport errors;
    the dispatcher logs and drops them.
    """

    async def publish(self, event_name: str, channel: str, payload: dict[str, Any]) -> bool: ...


@dataclass(frozen=True)
class RealtimeMessage:
    """Envelope carried on the bridge channel."""

    room: str
    event_name: str
    payload: dict[str, Any]

    def to_json(self) -> str:
        return json.dumps({"room": self.room, "eventName": self.event_name, "payload": self.payload})

    @classmethod
    def from_json(cls, raw: str | bytes) -> RealtimeMessage:
        data = json.loads(raw)
        return cls(room=data["room"], event_name=data["eventName"], payload=data.get("payload") or {})

    def to_client(self) -> dict[str, Any]:
        """Frame sent to websocket clients."""
        return {"event": self.event_name, "payload": self.payload}


def create_redis_client(settings: Settings) -> redis.Redis:
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password.get_secret_value() if settings.redis_password else None,
        decode_responses=True,
        socket_connect_timeout=5,
    )


class RedisRealtimePublisher:
    """Publishes events onto the Redis bridge channel. Pass redis_client for DI/testing."""

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.redis = redis_client
        self.bridge_channel = self.settings.realtime_bridge_channel
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        try:
            self.redis = create_redis_client(self.settings)
            await self.redis.ping()
            self._connected = True
            logger.info("Realtime publisher connected to Redis")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Realtime publisher could not connect to Redis: %s", e)
            self._connected = False
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Realtime publisher disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    @traced("realtime.publish")
    async def publish(self, event_name: str, channel: str, payload: dict[str, Any]) -> bool:
        if not self.is_available() or self.redis is None:
            return False
        add_span_attributes(**{"realtime.event": event_name, "realtime.channel": channel})
        message = RealtimeMessage(room=channel, event_name=event_name, payload=payload)
        await self.redis.publish(self.bridge_channel, message.to_json())
        logger.debug("Published %s to %s via %s", event_name, channel, self.bridge_channel)
        return True


class LocalRealtimePublisher:
    """Delivers events straight to the in-process connection manager."""

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    @traced("realtime.publish_local")
    async def publish(self, event_name: str, channel: str, payload: dict[str, Any]) -> bool:
        add_span_attributes(**{"realtime.event": event_name, "realtime.channel": channel})
        message = RealtimeMessage(room=channel, event_name=event_name, payload=payload)
        await self.manager.broadcast_to_channel(channel, message.to_client())
        return True


async def run_realtime_relay(app: Any, redis_client: redis.Redis | None = None) -> None:
    """Subscribe to the bridge channel and forward each message to app.state.ws_manager.

    Call as a background task from lifespan when Redis is enabled. Cancelling
    the task stops the loop.
    """
    settings = get_settings()
    client = redis_client or create_redis_client(settings)
    try:
        await client.ping()
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.warning("Redis not available, realtime relay not started: %s", e)
        return
    pubsub = client.pubsub()
    try:
        await pubsub.subscribe(settings.realtime_bridge_channel)
        logger.info("Relaying %s to WebSocket channels", settings.realtime_bridge_channel)
        async for raw in pubsub.listen():
            if raw["type"] != "message":
                continue
            try:
                message = RealtimeMessage.from_json(raw["data"])
            except (json.JSONDecodeError, KeyError, TypeError):
                logger.exception("Failed to parse realtime bridge message")
                continue
            try:
                parse_channel(message.room)
            except ValueError:
                logger.warning("Dropping bridge message %s for malformed room %r", message.event_name, message.room)
                continue
            manager = getattr(app.state, "ws_manager", None)
            if manager is not None:
                await manager.broadcast_to_channel(message.room, message.to_client())
    except asyncio.CancelledError:
        logger.info("Realtime relay task cancelled")
    except Exception:
        logger.exception("Realtime relay error")
    finally:
        await pubsub.unsubscribe()
        await pubsub.aclose()
        if redis_client is None:
            await client.aclose()
