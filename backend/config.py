"""
Configuration management for the Marketplace API.

Loads settings from .env via pydantic-settings.

Notes:
    - validate_production_settings() enforces strict CORS in production
    - SIMULATION_MODE enables the payment gateway simulator and the
      /payment/simulate endpoint; it must be off in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Marketplace API"

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/marketplace.db"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    simulation_mode: bool = True  # gateway calls are simulated locally

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "marketplace-api"
    jwt_access_ttl_minutes: int = 60

    # ── Payment gateway (Midtrans-style) ────────────────────────────
    midtrans_server_key: str = ""
    midtrans_client_key: str = ""
    midtrans_snap_url: str = "https://app.sandbox.midtrans.com/snap/v3/redirection"
    payment_expiry_hours: int = 24

    # ── Commerce ────────────────────────────────────────────────────
    default_currency: str = "USD"

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Raises ValueError on unsafe production
        configuration, logs warnings otherwise.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if self.simulation_mode:
                raise ValueError(
                    "SIMULATION_MODE must be false in production. "
                    "Simulation endpoints can settle payments without a gateway."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign access tokens."
                )
            if not self.midtrans_server_key:
                raise ValueError(
                    "MIDTRANS_SERVER_KEY must be set in production. "
                    "Payment notifications cannot be verified without it."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if self.simulation_mode:
                warnings.append("SIMULATION_MODE=true (payments can be settled locally)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            if not self.midtrans_server_key:
                warnings.append("MIDTRANS_SERVER_KEY not set (payment webhooks will be rejected)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
