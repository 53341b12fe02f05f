"""
Health check endpoint.
"""
import logging

from fastapi import APIRouter, Depends, status

from deps import get_relay
from services.relay import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(relay: RelayService = Depends(get_relay)):
    """Liveness plus pending-order and log counts."""
    return relay.health()
