"""Log record schema handed from collection to delivery.

A LogRecord is the normalized representation of one Slack message, carrying
thread identity and resolved channel/user metadata. Records are serialized
one per JSON line when imported into VictoriaLogs.
"""

import hashlib
import math
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from slack2logs.errors import TimestampParseError

# Length of the hex thread identifier derived from the thread root timestamp
THREAD_ID_LENGTH = 10

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def generate_thread_id(thread_ts: str) -> str:
    """Derive a stable thread identifier from the thread root timestamp.

    Args:
        thread_ts: Slack timestamp of the thread root message.

    Returns:
        The first THREAD_ID_LENGTH hex characters of the SHA-256 digest.
    """
    return hashlib.sha256(thread_ts.encode("utf-8")).hexdigest()[:THREAD_ID_LENGTH]


def format_timestamp(ts: str) -> str:
    """Convert a Slack epoch-seconds timestamp into an RFC 3339 UTC string.

    Sub-second precision is truncated.

    Raises:
        TimestampParseError: If ts is not a finite number.
    """
    try:
        seconds = float(ts)
    except (TypeError, ValueError) as e:
        raise TimestampParseError(ts) from e
    if not math.isfinite(seconds):
        raise TimestampParseError(ts)
    try:
        moment = datetime.fromtimestamp(int(seconds), tz=UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise TimestampParseError(ts) from e
    return moment.strftime(RFC3339_FORMAT)


class LogRecord(BaseModel):
    """Canonical message record stored in the logs.

    Attributes:
        thread_id: Digest of the thread root timestamp, shared by a whole thread.
        type: Slack event type (usually "message").
        user: Author ID as reported on the message.
        text: Message text.
        thread_ts: Timestamp of the thread root message.
        ts: Message time as an RFC 3339 string.
        channel_id: Channel the message was posted in.
        channel_name: Resolved channel name.
        user_id: Resolved author ID.
        display_name: Author display name.
        display_name_normalized: Author display name, normalized by Slack.
    """

    thread_id: str = Field(
        ...,
        min_length=THREAD_ID_LENGTH,
        max_length=THREAD_ID_LENGTH,
        description="Stable thread identifier",
    )
    type: str = Field(default="message", description="Slack event type")
    user: str = Field(default="", description="Author ID from the message")
    text: str = Field(default="", description="Message text")
    thread_ts: str = Field(..., min_length=1, description="Thread root timestamp")
    ts: str = Field(..., min_length=1, description="RFC 3339 message time")
    channel_id: str = Field(..., min_length=1, description="Channel ID")
    channel_name: str = Field(default="", description="Channel name")
    user_id: str = Field(default="", description="Resolved author ID")
    display_name: str = Field(default="", description="Author display name")
    display_name_normalized: str = Field(
        default="", description="Author display name, normalized"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


@dataclass(frozen=True)
class ThreadRequest:
    """Request to fetch the replies of one thread during backfill."""

    channel_id: str
    timestamp: str
