"""Resolved Slack user and channel metadata."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class UserInfo:
    """Author details attached to every record."""

    id: str
    display_name: str = ""
    display_name_normalized: str = ""


@dataclass(frozen=True)
class ChannelInfo:
    """Channel details attached to every record."""

    id: str
    name: str = ""


class MetadataResolver(Protocol):
    """Lookup capability used by transformers.

    Implementations raise LookupFailedError when metadata is unavailable and
    RateLimitedError when Slack throttles the lookup.
    """

    async def resolve_user(self, user_id: str) -> UserInfo: ...

    async def resolve_channel(self, channel_id: str) -> ChannelInfo: ...
