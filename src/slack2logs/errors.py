"""Exception types raised while collecting and delivering Slack messages.

Per-event errors (unauthorized channel, unparsable timestamp, failed lookup)
are handled by the collectors: the event is logged, counted and dropped.
Transport errors end the affected collector run. Join notices are not errors;
transformers signal them by returning ``None``.
"""


class Slack2LogsError(Exception):
    """Base class for all slack2logs errors."""


class UnauthorizedChannelError(Slack2LogsError):
    """Event originates from a channel outside the configured set."""

    def __init__(self, channel_id: str) -> None:
        super().__init__(f"got message from unsupported channel id: {channel_id}")
        self.channel_id = channel_id


class TimestampParseError(Slack2LogsError):
    """Slack timestamp is not a numeric epoch-seconds value."""

    def __init__(self, value: str) -> None:
        super().__init__(f"fail to parse timestamp: {value!r}")
        self.value = value


class LookupFailedError(Slack2LogsError):
    """User or channel metadata could not be resolved."""

    def __init__(self, kind: str, object_id: str, reason: str) -> None:
        super().__init__(f"error get {kind} {object_id!r}: {reason}")
        self.kind = kind
        self.object_id = object_id
        self.reason = reason


class RateLimitedError(Slack2LogsError):
    """Slack throttled a Web API call."""

    def __init__(self, method: str, retry_after: float | None = None) -> None:
        super().__init__(f"rate limited on {method}")
        self.method = method
        self.retry_after = retry_after


class TransportError(Slack2LogsError):
    """The Slack connection or a paginated query failed."""


class ChannelClosedError(Slack2LogsError):
    """Send on, or close of, an already closed channel; or receive after close."""


class DeliveryError(Slack2LogsError):
    """A record could not be imported into the log storage."""


__all__ = [
    "ChannelClosedError",
    "DeliveryError",
    "LookupFailedError",
    "RateLimitedError",
    "Slack2LogsError",
    "TimestampParseError",
    "TransportError",
    "UnauthorizedChannelError",
]
