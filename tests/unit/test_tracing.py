"""Tests for the tracing decorator (no SDK installed: spans are no-ops)."""

import inspect

import pytest

from app.shared.telemetry import add_span_attributes, traced


@traced("test.ok", attributes={"component": "test"})
async def _ok(value: int) -> int:
    add_span_attributes(value=value)
    return value * 2


@traced()
async def _boom() -> None:
    raise RuntimeError("boom")


async def test_traced_returns_the_result() -> None:
    assert inspect.iscoroutinefunction(_ok)
    assert await _ok(21) == 42
    assert _ok.__name__ == "_ok"


async def test_traced_reraises() -> None:
    with pytest.raises(RuntimeError, match="boom"):
        await _boom()
