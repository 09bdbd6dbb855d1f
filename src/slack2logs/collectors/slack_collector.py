"""Slack collector for slack2logs.

This module implements the SlackCollector class, which wires the live,
historical and thread reply collectors to a shared record sink and exports
the collected records to a delivery callback.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum

import structlog

from slack2logs.collectors.base import BaseCollector
from slack2logs.collectors.buffer import BatchBuffer
from slack2logs.collectors.channel import Channel
from slack2logs.collectors.history_collector import HistoricalCollector
from slack2logs.collectors.live_collector import LiveCollector
from slack2logs.collectors.resolver import SlackMetadataResolver
from slack2logs.collectors.thread_collector import ThreadReplyCollector
from slack2logs.collectors.transport import SlackTransport
from slack2logs.config import Settings, get_settings
from slack2logs.errors import ChannelClosedError, TransportError
from slack2logs.metrics import MESSAGES_OUT
from slack2logs.schemas.metadata import MetadataResolver
from slack2logs.schemas.record import LogRecord, ThreadRequest
from slack2logs.security.filters import ChannelMembershipFilter
from slack2logs.transformers.slack_transformer import SlackEventTransformer

logger = structlog.get_logger(__name__)

Deliver = Callable[[LogRecord], Awaitable[None]]


class RunMode(str, Enum):
    """How messages are collected."""

    LIVE = "live"
    BACKFILL = "backfill"


class SlackCollector:
    """Collect Slack messages into a single record stream.

    In live mode, Socket Mode events are buffered and the buffer is flushed
    every ``batch_flush_interval`` seconds by ``export``. In backfill mode the
    history and thread collectors write straight to the sink, which is closed
    once both have finished.

    Example:
        ```python
        collector = SlackCollector(settings)

        async with asyncio.TaskGroup() as tg:
            tg.create_task(collector.run(RunMode.BACKFILL))
            tg.create_task(collector.export(client.import_record))
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: SlackTransport | None = None,
        resolver: MetadataResolver | None = None,
    ) -> None:
        """Initialize the Slack collector.

        Args:
            settings: Application settings. If None, loads from environment.
            transport: Slack transport. If None, one is built from the settings.
            resolver: Metadata resolver. If None, a caching resolver over the
                transport is used.
        """
        self._settings = settings or get_settings()
        slack = self._settings.slack

        self._transport = transport or SlackTransport(slack)
        self._channel_filter = ChannelMembershipFilter.from_ids(slack.channels)
        self._transformer = SlackEventTransformer(
            self._channel_filter,
            resolver or SlackMetadataResolver(self._transport),
        )
        self._records: Channel[LogRecord] = Channel(slack.channel_capacity, name="records")
        self._buffer = BatchBuffer()
        self._flush_interval = slack.batch_flush_interval
        self._collectors: list[BaseCollector] = []

        logger.info(
            "slack_collector_initialized",
            channels=list(self._channel_filter),
            flush_interval=self._flush_interval,
            page_size=slack.history_page_size,
        )

    @property
    def records(self) -> Channel[LogRecord]:
        """Get the sink channel all collectors write to."""
        return self._records

    @property
    def buffer(self) -> BatchBuffer:
        """Get the live batch buffer."""
        return self._buffer

    @property
    def transformer(self) -> SlackEventTransformer:
        return self._transformer

    @property
    def collectors(self) -> list[BaseCollector]:
        """Get the collectors started by the last run."""
        return list(self._collectors)

    async def run(self, mode: RunMode | str = RunMode.LIVE) -> None:
        """Collect messages in the given mode until done or cancelled.

        Raises:
            TransportError: If the Slack credentials are not accepted.
        """
        mode = RunMode(mode)
        try:
            connected = await self._transport.validate_connection()
        except asyncio.CancelledError:
            self._records.close()
            raise
        if not connected:
            self._records.close()
            raise TransportError("slack connection could not be validated")

        if mode is RunMode.LIVE:
            await self.run_live()
        else:
            await self.run_backfill()

    async def run_live(self) -> None:
        """Listen to Socket Mode events until cancelled."""
        collector = LiveCollector(self._transport, self._transformer, self._buffer)
        self._collectors = [collector]
        await collector.run(self._records)

    async def run_backfill(self) -> None:
        """Walk the history and thread replies of every configured channel."""
        slack = self._settings.slack
        threads: Channel[ThreadRequest] = Channel(slack.channel_capacity, name="threads")

        history = HistoricalCollector(
            self._transport,
            self._transformer,
            self._channel_filter,
            threads,
            page_size=slack.history_page_size,
            retry_delay=slack.rate_limit_retry_delay,
        )
        replies = ThreadReplyCollector(
            self._transport,
            self._transformer,
            threads,
            page_size=slack.history_page_size,
            retry_delay=slack.rate_limit_retry_delay,
        )
        self._collectors = [history, replies]

        try:
            async with asyncio.TaskGroup() as tg:
                tg.create_task(replies.run(self._records))
                tg.create_task(history.run(self._records))
        finally:
            self._records.close()

    async def export(self, deliver: Deliver) -> None:
        """Hand every collected record to ``deliver`` until the sink is closed.

        Records from the sink are delivered as they arrive; the live buffer is
        flushed every flush interval and once more after the sink closes.
        """
        loop = asyncio.get_running_loop()
        next_flush = loop.time() + self._flush_interval

        try:
            while True:
                timeout = max(next_flush - loop.time(), 0)
                try:
                    record = await asyncio.wait_for(self._records.receive(), timeout)
                except TimeoutError:
                    await self.flush(deliver)
                    next_flush = loop.time() + self._flush_interval
                    continue
                except ChannelClosedError:
                    break

                await deliver(record)
                MESSAGES_OUT.inc()
        finally:
            await self.flush(deliver)

    async def flush(self, deliver: Deliver) -> int:
        """Deliver and clear every buffered record.

        Returns:
            Number of records delivered.
        """
        records = self._buffer.drain_all()
        for record in records:
            await deliver(record)
        if records:
            MESSAGES_OUT.inc(len(records))
            logger.info("batch_flushed", records=len(records))
        return len(records)
