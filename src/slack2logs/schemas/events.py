"""Inbound Socket Mode events, classified once at the transport boundary.

Every Socket Mode request is turned into exactly one of:

- MessageEvent: a new message (any subtype except message_changed)
- MessageChangedEvent: an edit notification carrying the edited message
- UnsupportedEvent: anything else (non events-API envelopes, other event types)
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

# Socket Mode request type carrying Events API payloads
EVENTS_API_REQUEST_TYPE = "events_api"
# Events API envelope type wrapping workspace events
CALLBACK_EVENT_TYPE = "event_callback"
MESSAGE_CHANGED_SUBTYPE = "message_changed"


class EventKind(str, Enum):
    """Closed set of inbound event kinds."""

    MESSAGE = "message"
    MESSAGE_CHANGED = "message_changed"
    UNSUPPORTED = "unsupported"


class MessagePayload(BaseModel):
    """Message body embedded in edit notifications."""

    user: str = ""
    text: str = ""
    ts: str = ""
    thread_ts: str = ""

    model_config = {"extra": "ignore"}


class MessageEvent(BaseModel):
    """A message posted to a channel."""

    kind: Literal[EventKind.MESSAGE] = EventKind.MESSAGE
    envelope_id: str
    type: str = "message"
    subtype: str = ""
    channel: str = ""
    user: str = ""
    text: str = ""
    ts: str = ""
    thread_ts: str = ""


class MessageChangedEvent(BaseModel):
    """An edit notification for a previously posted message."""

    kind: Literal[EventKind.MESSAGE_CHANGED] = EventKind.MESSAGE_CHANGED
    envelope_id: str
    type: str = "message"
    channel: str = ""
    ts: str = ""
    thread_ts: str = ""
    message: MessagePayload = Field(default_factory=MessagePayload)
    previous_message: MessagePayload = Field(default_factory=MessagePayload)


class UnsupportedEvent(BaseModel):
    """Any request the pipeline does not process."""

    kind: Literal[EventKind.UNSUPPORTED] = EventKind.UNSUPPORTED
    envelope_id: str
    description: str = ""


InboundEvent = MessageEvent | MessageChangedEvent | UnsupportedEvent


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _payload(data: Any) -> MessagePayload:
    if not isinstance(data, dict):
        return MessagePayload()
    return MessagePayload(
        user=_str(data.get("user")),
        text=_str(data.get("text")),
        ts=_str(data.get("ts")),
        thread_ts=_str(data.get("thread_ts")),
    )


def classify_request(
    request_type: str,
    envelope_id: str,
    payload: dict[str, Any] | None,
) -> InboundEvent:
    """Classify a Socket Mode request into an inbound event.

    Args:
        request_type: Socket Mode request type (e.g. "events_api").
        envelope_id: Envelope ID used to acknowledge the request.
        payload: Request payload.

    Returns:
        The matching event variant. Unknown shapes become UnsupportedEvent.
    """
    if request_type != EVENTS_API_REQUEST_TYPE:
        return UnsupportedEvent(envelope_id=envelope_id, description=f"request:{request_type}")

    payload = payload or {}
    if payload.get("type") != CALLBACK_EVENT_TYPE:
        return UnsupportedEvent(
            envelope_id=envelope_id, description=f"envelope:{payload.get('type')}"
        )

    event = payload.get("event")
    if not isinstance(event, dict) or event.get("type") != "message":
        inner_type = event.get("type") if isinstance(event, dict) else None
        return UnsupportedEvent(envelope_id=envelope_id, description=f"event:{inner_type}")

    subtype = _str(event.get("subtype"))
    if subtype == MESSAGE_CHANGED_SUBTYPE:
        return MessageChangedEvent(
            envelope_id=envelope_id,
            channel=_str(event.get("channel")),
            ts=_str(event.get("ts")),
            thread_ts=_str(event.get("thread_ts")),
            message=_payload(event.get("message")),
            previous_message=_payload(event.get("previous_message")),
        )

    return MessageEvent(
        envelope_id=envelope_id,
        subtype=subtype,
        channel=_str(event.get("channel")),
        user=_str(event.get("user")),
        text=_str(event.get("text")),
        ts=_str(event.get("ts")),
        thread_ts=_str(event.get("thread_ts")),
    )
