"""
Perfect Pay webhook endpoint.

Endpoints:
    POST /webhook/perfect — receive one sale notification

Perfect Pay cannot usefully retry on our behalf, so every decoded notification
is acknowledged with 200 whatever happens downstream. Only an unexpected fault
while dispatching turns into a 500.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from deps import get_relay
from domain.constants import WEBHOOK_PATH
from domain.enums import LogType
from models import WebhookAck
from services.relay import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post(WEBHOOK_PATH, response_model=WebhookAck)
async def perfect_webhook(
    request: Request,
    relay: RelayService = Depends(get_relay),
):
    """Classify and route a Perfect Pay sale notification."""
    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be a JSON object")

    try:
        result = await relay.dispatch(data)
    except Exception as e:
        logger.error(f"Webhook dispatch failed: {e}", exc_info=True)
        relay.event_log.add(
            LogType.ERROR,
            f"❌ Error processing webhook: {e}",
            {"error": repr(e)},
        )
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return WebhookAck(
        order_code=result.order_code,
        status=result.status,
        processed_at=result.processed_at.isoformat(),
    )
