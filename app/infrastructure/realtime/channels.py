"""Canonical realtime channel names: ``{audience}:{id}``.

Every publisher and every subscription derives channel strings through these
functions; nothing else formats them by hand.
"""

from enum import Enum


class Audience(str, Enum):
    """Who a channel addresses."""

    TENANT = "tenant"
    USER = "user"
    PROJECT = "project"


def channel_for(audience: Audience, identifier: str) -> str:
    """Build the channel for audience and identifier.

    Raises:
        ValueError: If identifier is empty.
    """
    if not identifier:
        raise ValueError(f"{audience.value} channel needs a non-empty id")
    return f"{audience.value}:{identifier}"


def tenant_channel(tenant_id: str) -> str:
    return channel_for(Audience.TENANT, tenant_id)


def user_channel(user_id: str) -> str:
    return channel_for(Audience.USER, user_id)


def project_channel(project_id: str) -> str:
    return channel_for(Audience.PROJECT, project_id)


def parse_channel(channel: str) -> tuple[Audience, str]:
    """Split a channel back into (audience, id).

    Raises:
        ValueError: If channel is not of the form ``{audience}:{id}`` with a known audience.
    """
    audience, sep, identifier = channel.partition(":")
    if not sep or not identifier:
        raise ValueError(f"Malformed channel {channel!r}")
    try:
        return Audience(audience), identifier
    except ValueError:
        raise ValueError(f"Unknown channel audience {audience!r}") from None
