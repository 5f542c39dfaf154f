"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (WebSocket manager,
realtime publisher and relay, event dispatcher, scoped client factory,
DB engine dispose).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: WebSocket manager, realtime publisher (Redis bridge when
    enabled, else in-process), relay task, event dispatcher, scoped client
    factory. Shutdown order: drain in-flight publishes, relay stop, publisher
    disconnect, factory unregister, SQL engine dispose.
    """
    settings = get_settings()

    from app.api.websocket import ConnectionManager
    from app.infrastructure.persistence.client import DataClient
    from app.infrastructure.persistence.database import get_session_factory
    from app.infrastructure.persistence.scoped_clients import (
        ScopedClientFactory,
        set_client_factory,
    )
    from app.infrastructure.realtime import (
        EventDispatcher,
        LocalRealtimePublisher,
        RedisRealtimePublisher,
        run_realtime_relay,
    )

    # ---- Startup ----
    app.state.ws_manager = ConnectionManager()
    app.state.realtime_publisher = None
    app.state.realtime_relay_task = None
    app.state.realtime_mode = "disabled"

    if settings.realtime_enabled:
        if settings.redis_enabled:
            publisher = RedisRealtimePublisher(settings=settings)
            await publisher.connect()
            app.state.realtime_publisher = publisher
            app.state.realtime_relay_task = asyncio.create_task(run_realtime_relay(app))
            app.state.realtime_mode = "redis"
        else:
            app.state.realtime_publisher = LocalRealtimePublisher(app.state.ws_manager)
            app.state.realtime_mode = "local"

    dispatcher = EventDispatcher(
        app.state.realtime_publisher,
        timeout_seconds=settings.realtime_publish_timeout_seconds,
    )
    app.state.event_dispatcher = dispatcher

    factory = ScopedClientFactory(DataClient(get_session_factory()), dispatcher)
    set_client_factory(factory)
    app.state.client_factory = factory
    logger.info("Scoped client factory ready (realtime: %s)", app.state.realtime_mode)

    yield

    # ---- Shutdown ----
    await dispatcher.drain()
    logger.info("Pending realtime events drained")

    relay_task = getattr(app.state, "realtime_relay_task", None)
    if relay_task is not None:
        relay_task.cancel()
        try:
            await relay_task
        except asyncio.CancelledError:
            pass
        logger.info("Realtime relay task stopped")

    publisher = getattr(app.state, "realtime_publisher", None)
    if isinstance(publisher, RedisRealtimePublisher):
        await publisher.disconnect()

    set_client_factory(None)
    app.state.client_factory = None

    from app.infrastructure.persistence import database

    await database.dispose_engine()
