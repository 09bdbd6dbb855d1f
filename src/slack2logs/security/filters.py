"""Security filters for data collection.

This module restricts collection to the channels the operator configured.
Events from any other channel are rejected before metadata is resolved, so
nothing from an unexpected channel reaches the log storage.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

import structlog

from slack2logs.errors import UnauthorizedChannelError

logger = structlog.get_logger()


@dataclass(frozen=True)
class ChannelMembershipFilter:
    """Static set of channel IDs the pipeline is authorized to ingest from.

    Attributes:
        channel_ids: IDs of the channels to collect from. Must not be empty.

    Example:
        >>> channel_filter = ChannelMembershipFilter.from_ids(["C001", "C002"])
        >>> channel_filter.is_authorized("C001")
        True
        >>> channel_filter.is_authorized("C999")
        False
    """

    channel_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.channel_ids:
            raise ValueError(
                "got 0 slack channels to listen to. "
                "At least one slack channel should be defined"
            )

    @classmethod
    def from_ids(cls, channel_ids: Iterable[str]) -> "ChannelMembershipFilter":
        """Build a filter from any iterable of channel IDs."""
        return cls(channel_ids=frozenset(channel_ids))

    def is_authorized(self, channel_id: str) -> bool:
        """Check whether messages from channel_id may be collected."""
        return channel_id in self.channel_ids

    def ensure_authorized(self, channel_id: str) -> None:
        """Reject a channel outside the configured set.

        Raises:
            UnauthorizedChannelError: If channel_id is not configured.
        """
        if not self.is_authorized(channel_id):
            logger.debug("channel_not_authorized", channel_id=channel_id)
            raise UnauthorizedChannelError(channel_id)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.channel_ids))

    def __len__(self) -> int:
        return len(self.channel_ids)
