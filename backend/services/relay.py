"""
Relay service — owns all in-memory relay state for the process lifetime.

Created once in the FastAPI lifespan (main.py) and stored on app.state; routes
reach it through deps.get_relay. Nothing here is persisted: pending orders and
the event log are lost on restart.

Wiring:
    EventLog ← Forwarder ← ExpiryWorker ← PendingRegistry ← WebhookDispatcher
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import httpx

from config import Settings
from domain.constants import WEBHOOK_PATH
from domain.enums import LogType
from domain.errors import ValidationError
from models import DispatchResult, StatusResponse
from services.dispatcher import WebhookDispatcher
from services.event_log import EventLog
from services.expiry_worker import ExpiryWorker
from services.forwarder import Forwarder
from services.pending_registry import PendingRegistry

logger = logging.getLogger(__name__)


class RelayService:
    """
    The relay's single service object.

    Args:
        settings: Application settings (initial URL, timeouts, retention)
        transport: Optional httpx transport for the forwarder (tests)
        clock, sleep: Time source and delay used by the PIX timers (tests)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self._destination_url = settings.n8n_webhook_url
        self._started_at = time.monotonic()

        self.event_log = EventLog(retention_seconds=settings.log_retention_seconds)
        self.forwarder = Forwarder(
            self.event_log,
            get_url=lambda: self._destination_url,
            timeout=settings.forward_timeout_seconds,
            transport=transport,
        )
        self.expiry_worker = ExpiryWorker(
            self.forwarder,
            self.event_log,
            grace_period_seconds=settings.pix_timeout_seconds,
        )
        self.registry = PendingRegistry(
            on_expire=self.expiry_worker,
            grace_period_seconds=settings.pix_timeout_seconds,
            clock=clock,
            sleep=sleep,
        )
        self.dispatcher = WebhookDispatcher(self.registry, self.forwarder, self.event_log)

    # ── Webhooks ────────────────────────────────────────────────────

    async def dispatch(self, notification: dict) -> DispatchResult:
        return await self.dispatcher.dispatch(notification)

    # ── Runtime configuration ───────────────────────────────────────

    @property
    def destination_url(self) -> str:
        return self._destination_url

    def set_destination_url(self, url: Optional[str]) -> str:
        """Change the n8n URL. Applies to the very next forward."""
        url = (url or "").strip()
        if not url:
            raise ValidationError("URL not provided")

        self._destination_url = url
        self.event_log.add(LogType.INFO, f"⚙️ n8n URL updated to: {url}")
        return url

    # ── Reporting ───────────────────────────────────────────────────

    def status(self) -> StatusResponse:
        """Full monitoring snapshot for /status and the dashboard."""
        return StatusResponse(
            system_status="online",
            timestamp=datetime.now(timezone.utc),
            pending_pix_orders=self.registry.size(),
            orders=self.registry.snapshot(),
            logs_last_hour=self.event_log.entries(),
            statistics=self.event_log.statistics(),
            n8n_webhook_url=self._destination_url,
        )

    def health(self) -> dict:
        return {
            "status": "online",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "pending_orders": self.registry.size(),
            "logs_count": len(self.event_log),
            "uptime": round(time.monotonic() - self._started_at, 3),
        }

    # ── Lifecycle ───────────────────────────────────────────────────

    def announce_startup(self) -> None:
        base = self.settings.public_base_url.rstrip("/")
        self.event_log.add(
            LogType.INFO,
            f"🚀 Perfect Webhook relay v2.0 started on port {self.settings.port}",
        )
        if base:
            self.event_log.add(LogType.INFO, f"📡 Perfect Pay webhook: {base}{WEBHOOK_PATH}")
            self.event_log.add(LogType.INFO, f"🖥️ Monitor: {base}/")
        self.event_log.add(LogType.INFO, f"🎯 n8n webhook: {self._destination_url}")

    async def shutdown(self) -> None:
        pending = self.registry.size()
        if pending:
            logger.warning(f"Shutting down with {pending} pending PIX order(s); they will not be forwarded")
        await self.registry.shutdown()
