"""
In-memory event log for the relay.

Every state transition (received, stored, cancelled, timed out, sent, failed)
is appended here with a timestamp, a type tag, a message and optional data.
Entries older than the retention window (1 hour by default) are pruned on each
append. The /status statistics are derived by filtering these entries rather
than being tallied separately.

Each entry is also mirrored to the process log.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from domain.enums import LogType, SaleStatus
from models import LogEntry, Statistics

logger = logging.getLogger(__name__)

_LEVELS = {
    LogType.ERROR: logging.ERROR,
    LogType.TIMEOUT: logging.WARNING,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventLog:
    """
    Append-only, time-pruned log buffer.

    Not thread-safe; all writers run on the same asyncio event loop.
    """

    def __init__(
        self,
        retention_seconds: float = 3600,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._retention = timedelta(seconds=retention_seconds)
        self._clock = clock or _utcnow
        self._entries: list[LogEntry] = []

    def add(self, type: LogType | str, message: str, data: Optional[dict[str, Any]] = None) -> LogEntry:
        log_type = LogType(type)
        entry = LogEntry(
            timestamp=self._clock(),
            type=log_type.value,
            message=message,
            data=data,
        )
        self._entries.append(entry)
        logger.log(_LEVELS.get(log_type, logging.INFO), f"{log_type.value.upper()}: {message}")

        self._prune(entry.timestamp)
        return entry

    def _prune(self, now: datetime) -> None:
        """Drop entries older than the retention window."""
        cutoff = now - self._retention
        self._entries = [e for e in self._entries if e.timestamp > cutoff]

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def count(self, type: LogType | str, status: Optional[str] = None) -> int:
        """Count retained entries of a type, optionally matching data["status"]."""
        log_type = LogType(type).value
        total = 0
        for entry in self._entries:
            if entry.type != log_type:
                continue
            if status is not None and (entry.data or {}).get("status") != status:
                continue
            total += 1
        return total

    def statistics(self) -> Statistics:
        return Statistics(
            total_webhooks_received=self.count(LogType.WEBHOOK_RECEIVED),
            approved_received=self.count(LogType.WEBHOOK_RECEIVED, status=SaleStatus.APPROVED.value),
            pix_generated=self.count(LogType.WEBHOOK_RECEIVED, status=SaleStatus.PENDING.value),
            webhooks_sent=self.count(LogType.WEBHOOK_SENT),
            timeouts_triggered=self.count(LogType.TIMEOUT),
            errors=self.count(LogType.ERROR),
        )
