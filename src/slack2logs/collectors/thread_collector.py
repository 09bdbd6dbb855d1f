"""Thread reply collector: fetches the replies of each requested thread."""

import asyncio
from datetime import UTC, datetime

import structlog

from slack2logs.collectors.base import BaseCollector, CollectorState
from slack2logs.collectors.channel import Channel
from slack2logs.collectors.transport import SlackTransport
from slack2logs.errors import RateLimitedError, Slack2LogsError, TransportError
from slack2logs.metrics import MESSAGES_RECEIVED
from slack2logs.schemas.record import LogRecord, ThreadRequest
from slack2logs.transformers.slack_transformer import SlackEventTransformer, is_join_notice

logger = structlog.get_logger(__name__)


class ThreadReplyCollector(BaseCollector):
    """Consume thread requests until the queue is closed.

    Replies are paginated with the same page size as channel history. The
    root message is skipped since the history collector already emitted it.
    A page is only written to the sink once all of its records are built, so
    a rate-limited page can be retried without duplicates.
    """

    name = "threads"

    def __init__(
        self,
        transport: SlackTransport,
        transformer: SlackEventTransformer,
        threads: Channel[ThreadRequest],
        page_size: int = 500,
        retry_delay: float = 10.0,
    ) -> None:
        super().__init__()
        self._transport = transport
        self._transformer = transformer
        self._threads = threads
        self._page_size = page_size
        self._retry_delay = retry_delay

    async def run(self, sink: Channel[LogRecord]) -> None:
        self.reset_stats()
        self._stats.start_time = datetime.now(UTC)
        self._state = CollectorState.RUNNING

        try:
            async for request in self._threads:
                await self.collect_thread(request, sink)
        finally:
            self._state = CollectorState.STOPPED
            self._stats.end_time = datetime.now(UTC)
            logger.info(
                "thread_collection_finished",
                replies=self._stats.records_emitted,
                skipped=self._stats.items_skipped,
                errors=len(self._stats.errors),
            )

    async def collect_thread(self, request: ThreadRequest, sink: Channel[LogRecord]) -> None:
        """Write every reply of one thread to the sink."""
        cursor: str | None = None

        while True:
            try:
                page = await self._transport.fetch_replies(
                    request.channel_id,
                    request.timestamp,
                    cursor=cursor,
                    limit=self._page_size,
                )
                records = await self._build_page(request, page.items)
            except RateLimitedError as e:
                logger.warning(
                    "thread_rate_limited",
                    channel_id=request.channel_id,
                    thread_ts=request.timestamp,
                    retry_after=e.retry_after,
                    delay=self._retry_delay,
                )
                await asyncio.sleep(self._retry_delay)
                continue
            except TransportError as e:
                self._record_error(
                    "thread_page_failed",
                    e,
                    channel_id=request.channel_id,
                    thread_ts=request.timestamp,
                )
                return

            for record in records:
                await sink.send(record)
            self._stats.records_emitted += len(records)

            if not page.has_more or not page.next_cursor:
                return
            cursor = page.next_cursor

    async def _build_page(self, request: ThreadRequest, replies: list[dict]) -> list[LogRecord]:
        """Build the records of one replies page.

        Raises:
            RateLimitedError: If Slack throttled a metadata lookup.
        """
        records: list[LogRecord] = []

        for reply in replies:
            ts = reply.get("ts") or ""
            if ts == request.timestamp:
                continue

            MESSAGES_RECEIVED.inc()
            self._stats.messages_received += 1

            text = reply.get("text") or ""
            if is_join_notice(text):
                self._stats.items_skipped += 1
                continue

            try:
                record = await self._transformer.build_record(
                    channel_id=request.channel_id,
                    user_id=reply.get("user") or "",
                    text=text,
                    ts=ts,
                    thread_ts=reply.get("thread_ts") or request.timestamp,
                    message_type=reply.get("type") or "message",
                )
            except RateLimitedError:
                raise
            except Slack2LogsError as e:
                self._record_error(
                    "thread_reply_skipped", e, channel_id=request.channel_id, ts=ts
                )
                continue

            records.append(record)

        return records
