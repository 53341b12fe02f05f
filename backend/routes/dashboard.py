"""
Monitor dashboard.

Serves a single static page that polls GET /status every 10 seconds and lets an
operator change the n8n URL through POST /config/n8n-url.
"""
import os

from fastapi import APIRouter
from fastapi.responses import FileResponse

router = APIRouter(tags=["dashboard"])

DASHBOARD_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "static", "dashboard.html")


@router.get("/", include_in_schema=False)
async def dashboard():
    return FileResponse(DASHBOARD_FILE, media_type="text/html")
