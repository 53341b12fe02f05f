"""
Expiry worker — runs when a pending PIX order's grace period elapses.

The registry has already removed the entry by the time this is called. The
worker forwards the snapshot captured when the timer was armed (not whatever
the latest notification for that code was) as a 'pix_timeout' event.
"""
import logging

from domain.enums import EventType, LogType
from services.event_log import EventLog
from services.forwarder import Forwarder
from services.pending_registry import PendingEntry

logger = logging.getLogger(__name__)


class ExpiryWorker:

    def __init__(self, forwarder: Forwarder, event_log: EventLog, grace_period_seconds: float):
        self._forwarder = forwarder
        self._log = event_log
        self._grace_minutes = grace_period_seconds / 60

    async def __call__(self, entry: PendingEntry) -> None:
        order_code = entry.order_code
        self._log.add(
            LogType.TIMEOUT,
            f"⏰ PIX TIMEOUT ({self._grace_minutes:g} min) reached for: {order_code} "
            f"- sending unpaid PIX",
            {
                "order_code": order_code,
                "customer": entry.customer_name,
                "amount": entry.amount,
            },
        )

        result = await self._forwarder.forward(entry.notification, EventType.PIX_TIMEOUT)

        if result.success:
            self._log.add(LogType.SUCCESS, f"✅ PIX TIMEOUT forwarded to n8n: {order_code}")
        else:
            self._log.add(
                LogType.ERROR,
                f"❌ Failed to forward PIX TIMEOUT to n8n: {order_code} - {result.error}",
            )
