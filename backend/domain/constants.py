"""
Domain constants used across services/routers.
"""

# Outbound request identity (sent to n8n with every forward)
SYSTEM_SOURCE = "perfect-webhook-system"
SYSTEM_VERSION = "2.0"
USER_AGENT = f"Perfect-Webhook-System/{SYSTEM_VERSION}"

# Perfect Pay payload fields read by the dispatcher
FIELD_ORDER_CODE = "code"
FIELD_STATUS = "sale_status_enum_key"
FIELD_CUSTOMER = "customer"
FIELD_CUSTOMER_NAME = "full_name"
FIELD_AMOUNT = "sale_amount"

# Placeholders for optional fields missing from a notification
UNKNOWN_CUSTOMER = "unknown"
DEFAULT_AMOUNT = 0

# Inbound webhook route (announced in the startup log)
WEBHOOK_PATH = "/webhook/perfect"
