"""Delivery of records to log storage."""

from slack2logs.delivery.victorialogs import VictoriaLogsClient

__all__ = ["VictoriaLogsClient"]
