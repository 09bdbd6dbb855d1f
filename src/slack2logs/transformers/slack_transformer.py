"""Slack transformer for converting inbound message events into log records.

Key features:
- Rejects events from channels outside the configured set
- Skips "user joined the channel" notices
- Collapses edits onto the edited message (author, text, thread)
- Resolves author and channel metadata through a MetadataResolver
- Normalizes timestamps to RFC 3339 and derives the thread identifier

Example usage:
    transformer = SlackEventTransformer(channel_filter, resolver)
    record = await transformer.transform(event)
    if record is not None:
        buffer.put(transformer.batch_key(event), record)
"""

from slack2logs.schemas.events import MessageChangedEvent, MessageEvent
from slack2logs.schemas.metadata import MetadataResolver
from slack2logs.schemas.record import LogRecord, format_timestamp, generate_thread_id
from slack2logs.security.filters import ChannelMembershipFilter
from slack2logs.transformers.base import BaseTransformer

# Suffix of the notice Slack posts when a user joins a channel,
# e.g. "<@U0787V2AW9W> has joined the channel"
JOINED_CHANNEL_SUFFIX = "> has joined the channel"

MessageLikeEvent = MessageEvent | MessageChangedEvent


def is_join_notice(text: str) -> bool:
    """Check whether text is a "user joined the channel" notice."""
    return text.endswith(JOINED_CHANNEL_SUFFIX)


class SlackEventTransformer(BaseTransformer[MessageLikeEvent]):
    """Transformer for converting Slack message events into LogRecords.

    The same record builder is used by the live listener and by the
    historical and thread reply collectors, so every record carries the same
    metadata and thread identity regardless of how it was collected.

    Attributes:
        source_name: Identifier for the data source ("slack").
    """

    source_name: str = "slack"

    def __init__(
        self,
        channel_filter: ChannelMembershipFilter,
        resolver: MetadataResolver,
    ) -> None:
        """Initialize the Slack transformer.

        Args:
            channel_filter: Channels records may be created for.
            resolver: Lookup capability for user and channel metadata.
        """
        self._channel_filter = channel_filter
        self._resolver = resolver

    @property
    def channel_filter(self) -> ChannelMembershipFilter:
        """Get the channel filter used to authorize events."""
        return self._channel_filter

    async def transform(self, item: MessageLikeEvent) -> LogRecord | None:
        """Transform a live message event into a LogRecord.

        Args:
            item: A message or edit notification.

        Returns:
            The record, or None if the event is a join notice.

        Raises:
            UnauthorizedChannelError: If the channel is not configured.
            TimestampParseError: If the event timestamp is not numeric.
            LookupFailedError: If user or channel metadata is unavailable.
            RateLimitedError: If Slack throttled a lookup.
        """
        self._channel_filter.ensure_authorized(item.channel)

        if self.should_skip(item):
            return None

        user_id, text = self._effective_author_and_text(item)

        return await self.build_record(
            channel_id=item.channel,
            user_id=user_id,
            text=text,
            ts=item.ts,
            thread_ts=self.resolve_thread_ts(item),
            message_type=item.type,
        )

    def should_skip(self, item: MessageLikeEvent) -> bool:
        """Skip join notices, judged on the effective (post-edit) text."""
        _, text = self._effective_author_and_text(item)
        return is_join_notice(text)

    @staticmethod
    def batch_key(item: MessageLikeEvent) -> str:
        """Key under which the record is buffered.

        Edits use the timestamp of the message before the edit, so an edit
        overwrites the buffered original instead of adding a second record.
        """
        if isinstance(item, MessageChangedEvent) and item.previous_message.ts:
            return item.previous_message.ts
        return item.ts

    @staticmethod
    def resolve_thread_ts(item: MessageLikeEvent) -> str:
        """Resolve the thread root timestamp of an event.

        Precedence: the event's own thread timestamp, then its own timestamp.
        For edits the edited message decides first (its thread timestamp when
        it is a reply, else its own timestamp), and the previous message's
        thread timestamp, then its own timestamp, override both.
        """
        thread_ts = item.thread_ts or item.ts

        if isinstance(item, MessageChangedEvent):
            edited = item.message
            if edited.thread_ts and edited.thread_ts != edited.ts:
                thread_ts = edited.thread_ts
            elif edited.ts:
                thread_ts = edited.ts

            previous = item.previous_message
            if previous.thread_ts:
                thread_ts = previous.thread_ts
            elif previous.ts:
                thread_ts = previous.ts

        return thread_ts

    async def build_record(
        self,
        *,
        channel_id: str,
        user_id: str,
        text: str,
        ts: str,
        thread_ts: str,
        message_type: str = "message",
    ) -> LogRecord:
        """Build a LogRecord, resolving author and channel metadata.

        Args:
            channel_id: Channel the message belongs to.
            user_id: Author of the message.
            text: Message text.
            ts: Slack epoch-seconds timestamp of the message.
            thread_ts: Thread root timestamp; falls back to ts when empty.
            message_type: Slack event type.

        Raises:
            UnauthorizedChannelError: If the channel is not configured.
            TimestampParseError: If ts is not numeric.
            LookupFailedError: If user or channel metadata is unavailable.
            RateLimitedError: If Slack throttled a lookup.
        """
        self._channel_filter.ensure_authorized(channel_id)

        formatted_ts = format_timestamp(ts)
        thread_ts = thread_ts or ts

        user = await self._resolver.resolve_user(user_id)
        channel = await self._resolver.resolve_channel(channel_id)

        return LogRecord(
            thread_id=generate_thread_id(thread_ts),
            type=message_type or "message",
            user=user_id,
            text=text,
            thread_ts=thread_ts,
            ts=formatted_ts,
            channel_id=channel_id,
            channel_name=channel.name,
            user_id=user.id,
            display_name=user.display_name,
            display_name_normalized=user.display_name_normalized,
        )

    @staticmethod
    def _effective_author_and_text(item: MessageLikeEvent) -> tuple[str, str]:
        if isinstance(item, MessageChangedEvent):
            return item.message.user, item.message.text
        return item.user, item.text
