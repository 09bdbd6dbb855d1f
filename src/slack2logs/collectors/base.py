"""Base collector interface for slack2logs.

Collectors consume Slack data (live events or paginated history) and produce
LogRecords. Each collector writes into a sink Channel or a BatchBuffer; the
exporter drains both and hands records to delivery.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from slack2logs.collectors.channel import Channel
from slack2logs.metrics import HANDLE_ERRORS
from slack2logs.schemas.record import LogRecord

logger = structlog.get_logger(__name__)


class CollectorState(str, Enum):
    """Lifecycle of a collector run."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass
class CollectionStats:
    """Statistics for a collection run.

    Attributes:
        messages_received: Messages seen by the collector.
        records_emitted: Records written to the sink or buffer.
        items_skipped: Messages skipped as noise.
        errors: Reasons of events dropped because of errors.
        start_time: When the run started.
        end_time: When the run stopped.
    """

    messages_received: int = 0
    records_emitted: int = 0
    items_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Calculate the duration of the run in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


class BaseCollector(ABC):
    """Abstract base class for all collectors.

    Subclasses implement ``run``, which returns when the source is exhausted
    or raises ``asyncio.CancelledError`` when the run is cancelled.
    """

    name: str = "collector"

    def __init__(self) -> None:
        self._stats = CollectionStats()
        self._state = CollectorState.IDLE

    @property
    def stats(self) -> CollectionStats:
        """Get the current collection statistics."""
        return self._stats

    @property
    def state(self) -> CollectorState:
        """Get the current lifecycle state."""
        return self._state

    def reset_stats(self) -> None:
        """Reset the collection statistics for a new run."""
        self._stats = CollectionStats()

    @abstractmethod
    async def run(self, sink: Channel[LogRecord]) -> None:
        """Collect records until the source is exhausted or the run is cancelled.

        Args:
            sink: Channel receiving finished records.

        Raises:
            TransportError: If the Slack connection fails.
        """
        ...

    def _record_error(self, event: str, error: Exception, **context: Any) -> None:
        """Log and count an event dropped because of an error."""
        logger.warning(
            event,
            collector=self.name,
            reason=type(error).__name__,
            error=str(error),
            **context,
        )
        HANDLE_ERRORS.inc()
        self._stats.errors.append(f"{type(error).__name__}: {error}")


__all__ = [
    "BaseCollector",
    "CollectionStats",
    "CollectorState",
]
