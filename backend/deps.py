"""
Shared FastAPI dependencies.

The relay service is created in the app lifespan and stored on app.state;
routers get it through get_relay instead of importing module-level state.
"""

from fastapi import Request

from services.relay import RelayService


def get_relay(request: Request) -> RelayService:
    return request.app.state.relay
