"""Application configuration using pydantic-settings."""

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Quote engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # HTTP
    # ======================
    http_timeout: float = Field(default=30.0, description="Provider request timeout in seconds")

    # ======================
    # Info server (provider-tunable parameters)
    # ======================
    app_id: str = Field(default="edge", description="Application id sent to the info server")
    info_servers: list[str] = Field(
        default=["https://info1.edge.app", "https://info2.edge.app"],
        description="Info servers holding exchange parameters, tried in order",
    )
    exchange_info_refresh_seconds: float = Field(
        default=60.0, description="Minimum interval between exchange parameter refreshes"
    )

    # ======================
    # THORChain
    # ======================
    midgard_servers: list[str] = Field(
        default=["https://midgard.ninerealms.com"],
        description="Midgard servers used for pool snapshots",
    )
    thornode_servers: list[str] = Field(
        default=["https://thornode.ninerealms.com"],
        description="THORNode servers used for inbound addresses",
    )
    thorname: str = Field(default="ej", description="Affiliate THORName placed in swap memos")
    affiliate_fee_basis: int = Field(default=50, ge=0, lt=10000, description="Affiliate fee in bps")
    ninerealms_client_id: str = Field(default="", description="x-client-id header for Nine Realms")
    min_usd_swap: Decimal = Field(default=Decimal("30"), ge=0, description="Smallest swap in USD")

    # ======================
    # Quotes
    # ======================
    quote_expiration_seconds: int = Field(default=60, description="Lifetime of an assembled quote")
    expiry_margin_seconds: int = Field(
        default=30, description="Minimum remaining lifetime of any returned quote"
    )
    fee_cache_ttl_seconds: float = Field(
        default=30.0, description="Lifetime of pinned custom network fees"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "info_servers": self.info_servers,
            "thorchain": {
                "midgard": self.midgard_servers,
                "thornode": self.thornode_servers,
                "thorname": self.thorname,
                "affiliate_fee_basis": self.affiliate_fee_basis,
                "client_id": "***" if self.ninerealms_client_id else "(not set)",
            },
            "quotes": {
                "expiration_seconds": self.quote_expiration_seconds,
                "expiry_margin_seconds": self.expiry_margin_seconds,
                "fee_cache_ttl_seconds": self.fee_cache_ttl_seconds,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings.

    The library never calls this itself; the host application calls it once
    at startup, before building providers.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
