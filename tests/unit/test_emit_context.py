"""Tests for EmitContext and PersonalEmitContext."""

import dataclasses

import pytest

from app.infrastructure.realtime.emit_context import EmitContext, PersonalEmitContext


def test_defaults() -> None:
    ctx = EmitContext(actor_user_id="u1")
    assert ctx.project_id is None
    assert ctx.tenant_id is None
    assert ctx.skip_emit is False


def test_actor_required() -> None:
    with pytest.raises(ValueError):
        EmitContext(actor_user_id="")


def test_immutable() -> None:
    ctx = EmitContext(actor_user_id="u1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.tenant_id = "t2"  # type: ignore[misc]


def test_bound_to_tenant_replaces_caller_value() -> None:
    """A caller-supplied tenant id is replaced by the bound one; other fields kept."""
    ctx = EmitContext(actor_user_id="u1", project_id="p1", tenant_id="spoofed")
    bound = ctx.bound_to_tenant("t1")
    assert bound.tenant_id == "t1"
    assert bound.project_id == "p1"
    assert bound.actor_user_id == "u1"
    assert ctx.tenant_id == "spoofed"


def test_personal_context_forces_actor() -> None:
    personal = PersonalEmitContext(project_id="p1", skip_emit=True)
    ctx = personal.for_actor("u9")
    assert ctx == EmitContext(actor_user_id="u9", project_id="p1", skip_emit=True)
