"""Transformers for converting inbound Slack data into log records."""

from slack2logs.transformers.base import BaseTransformer, RawItemT
from slack2logs.transformers.slack_transformer import (
    JOINED_CHANNEL_SUFFIX,
    SlackEventTransformer,
    is_join_notice,
)

__all__ = [
    "BaseTransformer",
    "JOINED_CHANNEL_SUFFIX",
    "RawItemT",
    "SlackEventTransformer",
    "is_join_notice",
]
