"""Live collector: Socket Mode events into the batch buffer."""

from datetime import UTC, datetime

import structlog
from slack_sdk.socket_mode.request import SocketModeRequest

from slack2logs.collectors.base import BaseCollector, CollectorState
from slack2logs.collectors.buffer import BatchBuffer
from slack2logs.collectors.channel import Channel
from slack2logs.collectors.transport import SlackTransport
from slack2logs.errors import Slack2LogsError, TransportError
from slack2logs.metrics import HANDLE_ERRORS, MESSAGES_RECEIVED
from slack2logs.schemas.events import InboundEvent, UnsupportedEvent, classify_request
from slack2logs.schemas.record import LogRecord
from slack2logs.transformers.slack_transformer import SlackEventTransformer

logger = structlog.get_logger(__name__)


class LiveCollector(BaseCollector):
    """Consume Socket Mode events until cancelled.

    Message events are transformed and buffered under their batch key; the
    exporter flushes the buffer periodically. Successfully handled events and
    unsupported envelopes are acknowledged. Events that fail are logged,
    counted and left unacknowledged.

    The sink is closed when the run stops so the exporter can do its final
    flush and return.
    """

    name = "live"

    def __init__(
        self,
        transport: SlackTransport,
        transformer: SlackEventTransformer,
        buffer: BatchBuffer,
    ) -> None:
        super().__init__()
        self._transport = transport
        self._transformer = transformer
        self._buffer = buffer

    async def run(self, sink: Channel[LogRecord]) -> None:
        self.reset_stats()
        self._stats.start_time = datetime.now(UTC)
        self._state = CollectorState.RUNNING
        logger.info("live_collection_started", channels=sorted(self._transformer.channel_filter))

        try:
            await self._transport.connect()
            async for request in self._transport.events():
                await self.handle_request(request)
        finally:
            self._state = CollectorState.DRAINING
            sink.close()
            await self._transport.disconnect()
            self._state = CollectorState.STOPPED
            self._stats.end_time = datetime.now(UTC)
            logger.info(
                "live_collection_stopped",
                messages_received=self._stats.messages_received,
                records_buffered=self._stats.records_emitted,
                skipped=self._stats.items_skipped,
                errors=len(self._stats.errors),
            )

    async def handle_request(self, request: SocketModeRequest) -> None:
        """Classify a Socket Mode request and handle the resulting event."""
        event = classify_request(request.type, request.envelope_id, request.payload)
        await self.handle_event(event)

    async def handle_event(self, event: InboundEvent) -> None:
        """Transform and buffer a message event, then acknowledge it."""
        if isinstance(event, UnsupportedEvent):
            logger.debug("unsupported_event", description=event.description)
            await self._ack(event.envelope_id)
            return

        MESSAGES_RECEIVED.inc()
        self._stats.messages_received += 1

        try:
            record = await self._transformer.transform(event)
        except Slack2LogsError as e:
            self._record_error(
                "event_dropped", e, channel_id=event.channel, envelope_id=event.envelope_id
            )
            return

        if record is None:
            self._stats.items_skipped += 1
        else:
            self._buffer.put(self._transformer.batch_key(event), record)
            self._stats.records_emitted += 1

        await self._ack(event.envelope_id)

    async def _ack(self, envelope_id: str) -> None:
        try:
            await self._transport.ack(envelope_id)
        except TransportError as e:
            logger.error("ack_failed", envelope_id=envelope_id, error=str(e))
            HANDLE_ERRORS.inc()
