"""Realtime events: channel naming, emit context, emission rules, dispatch and transports."""

from app.infrastructure.realtime.channels import (
    Audience,
    parse_channel,
    project_channel,
    tenant_channel,
    user_channel,
)
from app.infrastructure.realtime.emission_rules import (
    EMISSION_RULES,
    EmissionRule,
    WriteKind,
    normalize_operation,
)
from app.infrastructure.realtime.emit_context import EmitContext, PersonalEmitContext
from app.infrastructure.realtime.emitter import (
    EventDispatcher,
    EventEmissionExtension,
    PendingEvent,
)
from app.infrastructure.realtime.publisher import (
    LocalRealtimePublisher,
    RealtimeMessage,
    RealtimePublisher,
    RedisRealtimePublisher,
    run_realtime_relay,
)

__all__ = [
    "EMISSION_RULES",
    "Audience",
    "EmissionRule",
    "EmitContext",
    "EventDispatcher",
    "EventEmissionExtension",
    "LocalRealtimePublisher",
    "PendingEvent",
    "PersonalEmitContext",
    "RealtimeMessage",
    "RealtimePublisher",
    "RedisRealtimePublisher",
    "WriteKind",
    "normalize_operation",
    "parse_channel",
    "project_channel",
    "run_realtime_relay",
    "tenant_channel",
    "user_channel",
]
