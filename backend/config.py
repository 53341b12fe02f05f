"""
Configuration management for the Perfect Pay webhook relay.

Loads settings from .env via pydantic-settings.

Notes:
    - n8n_webhook_url is only the initial destination; the relay keeps the live
      value and it can be changed at runtime through POST /config/n8n-url
    - validate_production_settings() is called once during app startup
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_N8N_WEBHOOK_URL = "https://n8n.example.com/webhook/perfect"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Downstream (n8n) ────────────────────────────────────────────
    n8n_webhook_url: str = DEFAULT_N8N_WEBHOOK_URL
    forward_timeout_seconds: float = 15.0

    # ── Pending PIX orders ──────────────────────────────────────────
    pix_timeout_seconds: float = 7 * 60  # 7 minutes

    # ── Event log ───────────────────────────────────────────────────
    log_retention_seconds: float = 60 * 60  # 1 hour

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    port: int = 3000
    public_base_url: str = ""  # only used in startup log lines

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    def validate_production_settings(self):
        """
        Validate settings before the app starts accepting webhooks.

        In production a placeholder or non-HTTP destination is a hard error;
        elsewhere it is only a warning.
        """
        if not self.n8n_webhook_url.startswith(("http://", "https://")):
            raise ValueError(
                f"N8N_WEBHOOK_URL must be an http(s) URL, got {self.n8n_webhook_url!r}"
            )

        if self.pix_timeout_seconds <= 0:
            raise ValueError("PIX_TIMEOUT_SECONDS must be positive")

        if self.environment == "production":
            if self.n8n_webhook_url == DEFAULT_N8N_WEBHOOK_URL:
                raise ValueError(
                    "N8N_WEBHOOK_URL must be set in production. "
                    "The default points at a placeholder host."
                )
            logger.info("✅ Production settings validated")
        elif self.n8n_webhook_url == DEFAULT_N8N_WEBHOOK_URL:
            logger.warning(
                "⚠️  N8N_WEBHOOK_URL not set — forwarding to placeholder "
                f"{DEFAULT_N8N_WEBHOOK_URL}"
            )


# Global settings instance
settings = Settings()
