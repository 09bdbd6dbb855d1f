"""Cached user and channel metadata lookups."""

import structlog

from slack2logs.collectors.transport import SlackTransport
from slack2logs.errors import LookupFailedError
from slack2logs.schemas.metadata import ChannelInfo, UserInfo

logger = structlog.get_logger(__name__)


class SlackMetadataResolver:
    """Resolve author and channel metadata through the Slack Web API.

    Successful lookups are cached for the lifetime of the resolver; failures
    are not cached, so a later event retries the lookup.
    """

    def __init__(self, transport: SlackTransport) -> None:
        self._transport = transport
        self._user_cache: dict[str, UserInfo] = {}
        self._channel_cache: dict[str, ChannelInfo] = {}

    async def resolve_user(self, user_id: str) -> UserInfo:
        """Get the author details for a user ID.

        Raises:
            LookupFailedError: If the user cannot be fetched.
            RateLimitedError: If Slack throttled the lookup.
        """
        if user_id in self._user_cache:
            return self._user_cache[user_id]

        user = await self._transport.fetch_user_info(user_id)
        if not user:
            raise LookupFailedError("user", user_id, "empty user object")

        profile = user.get("profile") or {}
        info = UserInfo(
            id=user.get("id") or user_id,
            display_name=profile.get("display_name") or "",
            display_name_normalized=profile.get("display_name_normalized") or "",
        )
        self._user_cache[user_id] = info
        logger.debug("user_resolved", user_id=user_id, display_name=info.display_name)
        return info

    async def resolve_channel(self, channel_id: str) -> ChannelInfo:
        """Get the channel details for a channel ID.

        Raises:
            LookupFailedError: If the channel cannot be fetched.
            RateLimitedError: If Slack throttled the lookup.
        """
        if channel_id in self._channel_cache:
            return self._channel_cache[channel_id]

        channel = await self._transport.fetch_conversation_info(channel_id)
        if not channel:
            raise LookupFailedError("channel", channel_id, "empty channel object")

        info = ChannelInfo(id=channel.get("id") or channel_id, name=channel.get("name") or "")
        self._channel_cache[channel_id] = info
        logger.debug("channel_resolved", channel_id=channel_id, channel_name=info.name)
        return info
