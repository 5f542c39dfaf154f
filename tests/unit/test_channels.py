"""Tests for realtime channel naming."""

import pytest

from app.infrastructure.realtime.channels import (
    Audience,
    channel_for,
    parse_channel,
    project_channel,
    tenant_channel,
    user_channel,
)


def test_channel_shapes() -> None:
    """Each audience formats as {audience}:{id}."""
    assert tenant_channel("t1") == "tenant:t1"
    assert user_channel("u1") == "user:u1"
    assert project_channel("p1") == "project:p1"


def test_project_channel_is_idempotent() -> None:
    """Same id yields byte-identical strings."""
    first = project_channel("clx9abc")
    second = project_channel("clx9abc")
    assert first == second
    assert first.encode() == second.encode()


def test_empty_id_rejected() -> None:
    """An empty id never produces a channel like 'project:'."""
    with pytest.raises(ValueError):
        project_channel("")
    with pytest.raises(ValueError):
        channel_for(Audience.USER, "")


@pytest.mark.parametrize(
    ("channel", "expected"),
    [
        ("tenant:t1", (Audience.TENANT, "t1")),
        ("user:u-2", (Audience.USER, "u-2")),
        ("project:p:3", (Audience.PROJECT, "p:3")),
    ],
)
def test_parse_channel(channel: str, expected: tuple[Audience, str]) -> None:
    """parse_channel splits on the first colon only."""
    assert parse_channel(channel) == expected


@pytest.mark.parametrize("channel", ["tenant", "tenant:", "room:1", ""])
def test_parse_channel_rejects_malformed(channel: str) -> None:
    with pytest.raises(ValueError):
        parse_channel(channel)
