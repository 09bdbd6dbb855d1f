"""slack2logs: relays Slack channel messages into VictoriaLogs."""

__version__ = "0.1.0"
