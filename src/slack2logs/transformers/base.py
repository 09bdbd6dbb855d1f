"""Base transformer interface for converting inbound Slack data into log records.

Transformers turn one raw item (a live event, a history message) into a
LogRecord, or return None when the item is noise that should not be stored.

Example usage:
    class SlackEventTransformer(BaseTransformer[MessageEvent]):
        async def transform(self, item: MessageEvent) -> LogRecord | None:
            if self.should_skip(item):
                return None
            return await self.build_record(...)
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from slack2logs.schemas.record import LogRecord

# Type variable for the raw items a transformer accepts
RawItemT = TypeVar("RawItemT")


class BaseTransformer(ABC, Generic[RawItemT]):
    """Abstract base class for transforming raw Slack items into LogRecords.

    Type Parameters:
        RawItemT: The type of raw item this transformer handles.

    Attributes:
        source_name: Identifier for the data source (e.g., "slack").
    """

    source_name: str = "unknown"

    @abstractmethod
    async def transform(self, item: RawItemT) -> LogRecord | None:
        """Transform a single raw item into a LogRecord.

        Args:
            item: The raw item to transform.

        Returns:
            A LogRecord, or None if the item should be skipped as noise.

        Raises:
            Slack2LogsError: If the item cannot be turned into a record
                (unauthorized channel, bad timestamp, failed lookup).
        """
        ...

    @abstractmethod
    def should_skip(self, item: RawItemT) -> bool:
        """Determine if a raw item is noise that produces no record."""
        ...

    def __repr__(self) -> str:
        """Return a string representation of the transformer."""
        return f"{self.__class__.__name__}(source={self.source_name!r})"
