"""Slack collectors for slack2logs.

This package contains the live Socket Mode collector, the historical
backfill and thread reply collectors, and the plumbing (channels, batch
buffer, transport) connecting them to delivery.
"""

from slack2logs.collectors.base import BaseCollector, CollectionStats, CollectorState
from slack2logs.collectors.buffer import BatchBuffer
from slack2logs.collectors.channel import Channel
from slack2logs.collectors.history_collector import HistoricalCollector
from slack2logs.collectors.live_collector import LiveCollector
from slack2logs.collectors.resolver import SlackMetadataResolver
from slack2logs.collectors.slack_collector import RunMode, SlackCollector
from slack2logs.collectors.thread_collector import ThreadReplyCollector
from slack2logs.collectors.transport import Page, SlackTransport

__all__ = [
    "BaseCollector",
    "BatchBuffer",
    "Channel",
    "CollectionStats",
    "CollectorState",
    "HistoricalCollector",
    "LiveCollector",
    "Page",
    "RunMode",
    "SlackCollector",
    "SlackMetadataResolver",
    "SlackTransport",
    "ThreadReplyCollector",
]
