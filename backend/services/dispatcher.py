"""
Webhook dispatcher — classifies a Perfect Pay notification and routes it.

Handles status values:
    approved  → cancel any pending PIX timer for the order, forward to n8n now
    pending   → store the order and (re)arm its 7-minute PIX timer
    anything else → logged and dropped (not forwarded, not stored)

Notifications without an order code or status are logged and dropped too.
Every path returns a DispatchResult so the caller can acknowledge receipt;
forwarding failures never turn into a failed acknowledgement.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from domain.enums import Classification, EventType, LogType, SaleStatus
from domain.errors import MalformedNotificationError
from models import DispatchResult, NotificationSummary
from services.event_log import EventLog
from services.forwarder import Forwarder
from services.pending_registry import PendingRegistry

logger = logging.getLogger(__name__)


def classify(status: Optional[str]) -> Classification:
    """Map a Perfect Pay status to the dispatcher route."""
    if status == SaleStatus.APPROVED.value:
        return Classification.APPROVED
    if status == SaleStatus.PENDING.value:
        return Classification.PROVISIONAL
    return Classification.UNRECOGNIZED


class WebhookDispatcher:

    def __init__(self, registry: PendingRegistry, forwarder: Forwarder, event_log: EventLog):
        self._registry = registry
        self._forwarder = forwarder
        self._log = event_log

    async def dispatch(self, notification: dict) -> DispatchResult:
        """
        Classify and route one inbound notification.

        Args:
            notification: Decoded JSON body, forwarded verbatim

        Returns:
            DispatchResult with order code, status and processing timestamp
        """
        try:
            summary = NotificationSummary.from_payload(notification)
        except MalformedNotificationError as e:
            self._log.add(
                LogType.ERROR,
                f"❌ Malformed webhook dropped: {e}",
                {"order_code": e.order_code, "status": e.status, "missing": e.missing},
            )
            return DispatchResult(
                order_code=_as_str(e.order_code),
                status=_as_str(e.status),
                processed_at=datetime.now(timezone.utc),
            )

        order_code = summary.order_code
        self._log.add(
            LogType.WEBHOOK_RECEIVED,
            f"Webhook received - Order: {order_code} | Status: {summary.status} "
            f"| Customer: {summary.customer_name} | Amount: R$ {summary.amount}",
            {
                "order_code": order_code,
                "status": summary.status,
                "customer": summary.customer_name,
                "amount": summary.amount,
                "full_data": notification,
            },
        )

        classification = classify(summary.status)
        forward_result = None

        if classification is Classification.APPROVED:
            forward_result = await self._handle_approved(summary, notification)
        elif classification is Classification.PROVISIONAL:
            self._handle_pending(summary, notification)
        else:
            self._log.add(
                LogType.INFO,
                f"❓ Unknown status received: {summary.status} for order: {order_code}",
            )

        return DispatchResult(
            order_code=order_code,
            status=summary.status,
            classification=classification.value,
            processed_at=datetime.now(timezone.utc),
            forward=forward_result,
        )

    async def _handle_approved(self, summary: NotificationSummary, notification: dict):
        """Final state: drop any pending PIX timer first, then forward the incoming payload."""
        order_code = summary.order_code
        self._log.add(LogType.INFO, f"✅ SALE APPROVED - processing order: {order_code}")

        if self._registry.cancel(order_code):
            self._log.add(LogType.INFO, f"🗑️ Removed from pending PIX list: {order_code}")

        result = await self._forwarder.forward(notification, EventType.APPROVED)

        if result.success:
            self._log.add(LogType.SUCCESS, f"✅ APPROVED sale forwarded to n8n: {order_code}")
        else:
            self._log.add(
                LogType.ERROR,
                f"❌ Failed to forward APPROVED sale to n8n: {order_code} - {result.error}",
            )
        return result

    def _handle_pending(self, summary: NotificationSummary, notification: dict) -> None:
        """Provisional state: store the order and (re)start its grace period."""
        order_code = summary.order_code
        grace_minutes = self._registry.grace_period_seconds / 60
        self._log.add(
            LogType.INFO,
            f"⏳ PIX GENERATED - awaiting payment: {order_code} | Timeout: {grace_minutes:g} minutes",
        )

        replaced = self._registry.upsert(
            order_code,
            notification,
            customer_name=summary.customer_name,
            amount=summary.amount,
        )
        if replaced:
            self._log.add(LogType.INFO, f"🔄 Previous timeout cancelled for: {order_code}")

        self._log.add(
            LogType.INFO,
            f"📝 PIX order stored: {order_code} | Customer: {summary.customer_name} "
            f"| Amount: R$ {summary.amount}",
        )


def _as_str(value) -> Optional[str]:
    return None if value is None else str(value)
