"""Schemas for slack2logs data models."""

from slack2logs.schemas.events import (
    EventKind,
    InboundEvent,
    MessageChangedEvent,
    MessageEvent,
    MessagePayload,
    UnsupportedEvent,
    classify_request,
)
from slack2logs.schemas.metadata import ChannelInfo, MetadataResolver, UserInfo
from slack2logs.schemas.record import (
    THREAD_ID_LENGTH,
    LogRecord,
    ThreadRequest,
    format_timestamp,
    generate_thread_id,
)

__all__ = [
    "THREAD_ID_LENGTH",
    "ChannelInfo",
    "EventKind",
    "InboundEvent",
    "LogRecord",
    "MessageChangedEvent",
    "MessageEvent",
    "MessagePayload",
    "MetadataResolver",
    "ThreadRequest",
    "UnsupportedEvent",
    "UserInfo",
    "classify_request",
    "format_timestamp",
    "generate_thread_id",
]
