"""Prometheus counters for the collection and delivery pipeline."""

from prometheus_client import Counter

# Collection side (Slack)
MESSAGES_RECEIVED = Counter(
    "vm_slack2logs_messages_received",
    "Message events received from Slack",
    ["source"],
).labels(source="slack")
MESSAGES_OUT = Counter(
    "vm_slack2logs_messages_out",
    "Records handed from the collector to delivery",
    ["source"],
).labels(source="slack")
HANDLE_ERRORS = Counter(
    "vm_slack2logs_errors",
    "Events dropped or failed while collecting",
    ["source"],
).labels(source="slack")

# Delivery side (VictoriaLogs)
MESSAGES_DELIVERY = Counter(
    "vm_slack2logs_messages_delivery",
    "Import requests sent to the log storage",
    ["destination"],
).labels(destination="vmlogs")
DELIVERY_ERRORS = Counter(
    "vm_slack2logs_delivery_errors",
    "Import requests that failed",
    ["destination"],
).labels(destination="vmlogs")
