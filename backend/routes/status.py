"""
Monitoring and runtime configuration endpoints.

Endpoints:
    GET  /status          — pending PIX orders, last-hour logs and statistics
    POST /config/n8n-url  — change the n8n destination URL at runtime
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from deps import get_relay
from models import ConfigUrlRequest, StatusResponse
from services.relay import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitoring"])


@router.get("/status", response_model=StatusResponse)
async def get_status(relay: RelayService = Depends(get_relay)):
    """Full monitoring snapshot (used by the dashboard)."""
    return relay.status()


@router.post("/config/n8n-url")
async def set_n8n_url(
    body: Optional[ConfigUrlRequest] = None,
    relay: RelayService = Depends(get_relay),
):
    """Point forwards at a new n8n webhook URL. Takes effect on the next forward."""
    url = relay.set_destination_url(body.url if body else None)
    logger.info(f"n8n destination changed to {url}")
    return {"success": True, "message": "n8n URL configured", "n8n_webhook_url": url}
