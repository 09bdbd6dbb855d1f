"""Export/import pump.

The Processor connects an exporter (a source of finished records) to an
importer (a log storage client). Delivery failures are logged by the pump and
never reach the collectors.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from slack2logs.errors import DeliveryError
from slack2logs.schemas.record import LogRecord

logger = structlog.get_logger(__name__)


class Exporter(Protocol):
    """Source of records, e.g. the Slack collector."""

    async def export(self, deliver: Callable[[LogRecord], Awaitable[None]]) -> None: ...


class Importer(Protocol):
    """Destination of records, e.g. the VictoriaLogs client."""

    async def import_record(self, record: LogRecord) -> None: ...


class Processor:
    """Forward every exported record to the importer."""

    def __init__(self, exporter: Exporter, importer: Importer) -> None:
        self._exporter = exporter
        self._importer = importer
        self.delivered = 0
        self.failed = 0

    async def run(self) -> None:
        """Run until the exporter returns."""
        logger.info("processor_started")
        await self._exporter.export(self._deliver)
        logger.info("processor_stopped", delivered=self.delivered, failed=self.failed)

    async def _deliver(self, record: LogRecord) -> None:
        try:
            await self._importer.import_record(record)
        except DeliveryError as e:
            self.failed += 1
            logger.error(
                "delivery_failed",
                error=str(e),
                channel_id=record.channel_id,
                thread_id=record.thread_id,
            )
            return
        self.delivered += 1
