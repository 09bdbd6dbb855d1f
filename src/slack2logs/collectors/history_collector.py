"""Historical backfill collector.

Walks the history of every configured channel page by page, requests the
replies of each message from the thread collector, and streams the built
records straight to the sink.
"""

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from slack2logs.collectors.base import BaseCollector, CollectorState
from slack2logs.collectors.channel import Channel
from slack2logs.collectors.transport import Page, SlackTransport
from slack2logs.errors import RateLimitedError, Slack2LogsError, TransportError
from slack2logs.metrics import MESSAGES_RECEIVED
from slack2logs.schemas.record import LogRecord, ThreadRequest
from slack2logs.security.filters import ChannelMembershipFilter
from slack2logs.transformers.slack_transformer import SlackEventTransformer, is_join_notice

logger = structlog.get_logger(__name__)


class HistoricalCollector(BaseCollector):
    """Paginate channel history, one task per configured channel.

    The thread queue is closed once every channel task has finished. The sink
    is left open; the owner closes it after the thread collector is done too.
    """

    name = "history"

    def __init__(
        self,
        transport: SlackTransport,
        transformer: SlackEventTransformer,
        channel_filter: ChannelMembershipFilter,
        threads: Channel[ThreadRequest],
        page_size: int = 500,
        retry_delay: float = 10.0,
    ) -> None:
        super().__init__()
        self._transport = transport
        self._transformer = transformer
        self._channel_filter = channel_filter
        self._threads = threads
        self._page_size = page_size
        self._retry_delay = retry_delay

    async def run(self, sink: Channel[LogRecord]) -> None:
        self.reset_stats()
        self._stats.start_time = datetime.now(UTC)
        self._state = CollectorState.RUNNING
        logger.info("history_collection_started", channels=len(self._channel_filter))

        try:
            async with asyncio.TaskGroup() as tg:
                for channel_id in self._channel_filter:
                    tg.create_task(self.collect_channel(channel_id, sink))
        finally:
            self._state = CollectorState.DRAINING
            self._threads.close()
            self._state = CollectorState.STOPPED
            self._stats.end_time = datetime.now(UTC)
            logger.info(
                "history_collection_finished",
                messages=self._stats.messages_received,
                records=self._stats.records_emitted,
                skipped=self._stats.items_skipped,
                errors=len(self._stats.errors),
                duration_seconds=self._stats.duration_seconds,
            )

    async def collect_channel(self, channel_id: str, sink: Channel[LogRecord]) -> None:
        """Walk the full history of one channel.

        A failing page ends the walk of this channel only.
        """
        cursor: str | None = None
        pages = 0

        while True:
            try:
                page = await self._fetch_page(channel_id, cursor)
            except TransportError as e:
                self._record_error("history_page_failed", e, channel_id=channel_id)
                return

            pages += 1
            for message in page.items:
                await self._handle_message(channel_id, message, sink)

            if not page.has_more or not page.next_cursor:
                break
            cursor = page.next_cursor

        logger.info("channel_history_collected", channel_id=channel_id, pages=pages)

    async def _fetch_page(self, channel_id: str, cursor: str | None) -> Page:
        while True:
            try:
                return await self._transport.fetch_history(
                    channel_id, cursor=cursor, limit=self._page_size
                )
            except RateLimitedError as e:
                logger.warning(
                    "history_rate_limited",
                    channel_id=channel_id,
                    retry_after=e.retry_after,
                    delay=self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)

    async def _handle_message(
        self, channel_id: str, message: dict[str, Any], sink: Channel[LogRecord]
    ) -> None:
        MESSAGES_RECEIVED.inc()
        self._stats.messages_received += 1

        ts = message.get("ts") or ""
        await self._threads.send(ThreadRequest(channel_id=channel_id, timestamp=ts))

        text = message.get("text") or ""
        if is_join_notice(text):
            self._stats.items_skipped += 1
            return

        while True:
            try:
                record = await self._transformer.build_record(
                    channel_id=channel_id,
                    user_id=message.get("user") or "",
                    text=text,
                    ts=ts,
                    thread_ts=message.get("thread_ts") or ts,
                    message_type=message.get("type") or "message",
                )
                break
            except RateLimitedError as e:
                logger.warning(
                    "history_lookup_rate_limited",
                    channel_id=channel_id,
                    ts=ts,
                    retry_after=e.retry_after,
                    delay=self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)
            except Slack2LogsError as e:
                self._record_error("history_message_skipped", e, channel_id=channel_id, ts=ts)
                return

        await sink.send(record)
        self._stats.records_emitted += 1
