"""Batching buffer for live records.

Live records are held until the next flush, keyed by the timestamp of the
original message. An edit arriving before the flush replaces the buffered
original, so each message is delivered once per flush in its latest form.
"""

import threading

from slack2logs.schemas.record import LogRecord


class BatchBuffer:
    """Keyed, lock-guarded record buffer.

    The lock is held only while the map is mutated; callers deliver the
    drained records after ``drain_all`` returns.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, LogRecord] = {}

    def put(self, key: str, record: LogRecord) -> None:
        """Insert a record, replacing any record buffered under the same key."""
        with self._lock:
            self._entries[key] = record

    def drain_all(self) -> list[LogRecord]:
        """Empty the buffer and return its records.

        A put racing with the drain lands either in the returned snapshot or
        in the emptied buffer.
        """
        with self._lock:
            records = list(self._entries.values())
            self._entries = {}
        return records

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
