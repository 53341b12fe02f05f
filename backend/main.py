"""
Perfect Webhook Relay — FastAPI Application (v2.0)

Receives Perfect Pay sale webhooks and relays them to n8n:
approved sales are forwarded immediately, generated PIX codes are held for
7 minutes and forwarded as 'pix_timeout' if no approval arrives in time.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from config import settings
from routes import dashboard, health, status, webhook
from services.relay import RelayService

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, build the relay. Shutdown: cancel PIX timers."""
    settings.validate_production_settings()

    relay = RelayService(settings)
    app.state.relay = relay
    relay.announce_startup()

    yield  # app runs here

    await relay.shutdown()
    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="Perfect Webhook Relay",
    description="Relays Perfect Pay sale webhooks to n8n with a PIX payment timeout",
    version="2.0.0",
    lifespan=lifespan,
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(webhook.router)
app.include_router(status.router)
app.include_router(health.router)
app.include_router(dashboard.router)


# ── Exception Handler ───────────────────────────────────────────────


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    The full traceback is logged server-side; the process keeps running.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "internal_server_error",
                "message": "Internal server error",
            },
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses.

    Keeps the original HTTP status code, but wraps the payload.
    """
    # DomainError (a subclass of HTTPException) carries structured error info
    if hasattr(exc, "message") and hasattr(exc, "details"):
        error_code = exc.__class__.__name__.replace("Error", "").lower()
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": exc.message,
                "error": {
                    "code": error_code,
                    "message": exc.message,
                    "details": exc.details,
                },
            },
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": message,
            "error": {
                "code": "http_error",
                "message": message,
                "details": detail if not isinstance(detail, str) else None,
            },
        },
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level="info")
