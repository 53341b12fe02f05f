"""
Domain enums for sale statuses, dispatch classifications, forwarded event types
and event log types.
"""

from enum import Enum


class SaleStatus(str, Enum):
    """Values of Perfect Pay's `sale_status_enum_key` the relay acts on."""
    APPROVED = "approved"
    PENDING = "pending"


class Classification(str, Enum):
    """How the dispatcher routes a notification."""
    APPROVED = "approved"          # final: forward immediately
    PROVISIONAL = "provisional"    # PIX generated: store and arm timer
    UNRECOGNIZED = "unrecognized"  # logged and dropped


class EventType(str, Enum):
    """Classification attached to a forwarded notification as `event_type`."""
    APPROVED = "approved"
    PIX_TIMEOUT = "pix_timeout"


class LogType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WEBHOOK_RECEIVED = "webhook_received"
    WEBHOOK_SENT = "webhook_sent"
    TIMEOUT = "timeout"
