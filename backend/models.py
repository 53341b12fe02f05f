"""
Pydantic models for request/response validation and in-memory relay state.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.constants import (
    DEFAULT_AMOUNT,
    FIELD_AMOUNT,
    FIELD_CUSTOMER,
    FIELD_CUSTOMER_NAME,
    FIELD_ORDER_CODE,
    FIELD_STATUS,
    UNKNOWN_CUSTOMER,
)
from domain.errors import MalformedNotificationError


# ── Inbound Notification ────────────────────────────────────────────

class NotificationSummary(BaseModel):
    """The handful of Perfect Pay fields the relay reads. Everything else is pass-through."""
    order_code: str
    status: str
    customer_name: str = UNKNOWN_CUSTOMER
    amount: Any = DEFAULT_AMOUNT

    @classmethod
    def from_payload(cls, data: dict) -> "NotificationSummary":
        """
        Extract the summary fields from a raw notification.

        Missing customer name / amount fall back to placeholders. A missing
        order code or status raises MalformedNotificationError.
        """
        order_code = data.get(FIELD_ORDER_CODE)
        status = data.get(FIELD_STATUS)

        missing = []
        if order_code in (None, ""):
            missing.append(FIELD_ORDER_CODE)
        if status in (None, ""):
            missing.append(FIELD_STATUS)
        if missing:
            raise MalformedNotificationError(missing, order_code=order_code, status=status)

        customer = data.get(FIELD_CUSTOMER)
        customer_name = None
        if isinstance(customer, dict):
            customer_name = customer.get(FIELD_CUSTOMER_NAME)
        if customer_name is not None and not isinstance(customer_name, str):
            customer_name = str(customer_name)

        amount = data.get(FIELD_AMOUNT)

        return cls(
            order_code=str(order_code),
            status=str(status),
            customer_name=customer_name or UNKNOWN_CUSTOMER,
            amount=amount if amount is not None else DEFAULT_AMOUNT,
        )


class WebhookAck(BaseModel):
    """Acknowledgement returned to Perfect Pay for every processed webhook."""
    success: bool = True
    message: str = "Webhook processed"
    order_code: Optional[str] = None
    status: Optional[str] = None
    processed_at: str


# ── Forwarding / Dispatch Results ───────────────────────────────────

class ForwardResult(BaseModel):
    """
    Outcome of a single POST to n8n.

    success is True whenever a response was received, whatever its status code.
    It is False only for transport failures (connect error, timeout, DNS).
    """
    success: bool
    http_status: Optional[int] = None
    data: Any = None
    error: Optional[str] = None


class DispatchResult(BaseModel):
    order_code: Optional[str] = None
    status: Optional[str] = None
    classification: Optional[str] = None
    processed_at: datetime
    forward: Optional[ForwardResult] = None


# ── Status / Dashboard ──────────────────────────────────────────────

class PendingOrderView(BaseModel):
    """One pending PIX order as shown on /status."""
    code: str
    customer_name: str
    amount: Any
    created_at: datetime
    remaining_time: int = Field(..., description="Milliseconds until the PIX timeout fires")


class LogEntry(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    timestamp: datetime
    type: str
    message: str
    data: Optional[dict[str, Any]] = None


class Statistics(BaseModel):
    """Counts over the retained log window, derived by filtering log entries."""
    total_webhooks_received: int = 0
    approved_received: int = 0
    pix_generated: int = 0
    webhooks_sent: int = 0
    timeouts_triggered: int = 0
    errors: int = 0


class StatusResponse(BaseModel):
    system_status: str = "online"
    timestamp: datetime
    pending_pix_orders: int
    orders: List[PendingOrderView]
    logs_last_hour: List[LogEntry]
    statistics: Statistics
    n8n_webhook_url: str


# ── Configuration ───────────────────────────────────────────────────

class ConfigUrlRequest(BaseModel):
    """Request to change the n8n destination URL at runtime."""
    url: Optional[str] = Field(default=None, description="New n8n webhook URL")
