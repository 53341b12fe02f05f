"""
Forwarder — delivers a classified Perfect Pay notification to n8n.

The outbound payload is the COMPLETE Perfect Pay webhook plus:
    event_type    — 'approved' or 'pix_timeout'
    processed_at  — ISO-8601 timestamp of the forward
    system_info   — static source/version metadata

Exactly one POST per call. No retries, no backoff.

Any received HTTP response counts as sent (success=True), including 4xx/5xx;
the status code is recorded so the dashboard and logs can tell them apart.
Only transport failures (connect error, timeout, DNS, bad URL) produce
success=False. forward() never raises for those.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from domain.constants import FIELD_ORDER_CODE, SYSTEM_SOURCE, SYSTEM_VERSION, USER_AGENT
from domain.enums import EventType, LogType
from models import ForwardResult
from services.event_log import EventLog

logger = logging.getLogger(__name__)


def build_payload(notification: dict, event_type: EventType | str) -> dict:
    """Full notification + our event_type, processed_at and system_info."""
    return {
        **notification,
        "event_type": EventType(event_type).value,
        "processed_at": datetime.now(timezone.utc).isoformat(),
        "system_info": {
            "source": SYSTEM_SOURCE,
            "version": SYSTEM_VERSION,
        },
    }


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class Forwarder:
    """
    Posts classified events to the current n8n URL.

    Args:
        event_log: Relay event log (attempt / sent / error entries)
        get_url: Returns the destination URL; read on every call so runtime
            changes apply to the next forward
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        event_log: EventLog,
        get_url: Callable[[], str],
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._log = event_log
        self._get_url = get_url
        self._timeout = timeout
        self._transport = transport

    async def forward(self, notification: dict, event_type: EventType | str) -> ForwardResult:
        event_type = EventType(event_type).value
        order_code = notification.get(FIELD_ORDER_CODE)
        url = self._get_url()
        payload = build_payload(notification, event_type)

        self._log.add(
            LogType.INFO,
            f"🚀 Sending to n8n - Order: {order_code} | Type: {event_type} | URL: {url}",
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": USER_AGENT,
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error_message = str(e) or e.__class__.__name__
            self._log.add(
                LogType.ERROR,
                f"❌ Failed to send to n8n - Order: {order_code} | Error: {error_message}",
                {
                    "order_code": order_code,
                    "event_type": event_type,
                    "error": error_message,
                },
            )
            return ForwardResult(success=False, error=error_message)

        body = _response_body(response)
        http_error = not response.is_success
        if http_error:
            logger.warning(
                f"n8n answered HTTP {response.status_code} for order {order_code} ({event_type})"
            )

        self._log.add(
            LogType.WEBHOOK_SENT,
            f"✅ Webhook sent to n8n - Order: {order_code} | Type: {event_type} "
            f"| HTTP status: {response.status_code}",
            {
                "order_code": order_code,
                "event_type": event_type,
                "http_status": response.status_code,
                "http_error": http_error,
                "response_data": body,
            },
        )
        return ForwardResult(success=True, http_status=response.status_code, data=body)
