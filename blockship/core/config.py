"""
Configuration management for the Blockship receiver.

Provides centralized, validated configuration from environment variables
with proper type checking and defaults.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseSettings):
    """Remote shipment store configuration."""

    url: str = Field(
        default="https://blockship-16599-default-rtdb.firebaseio.com",
        alias="SHIPMENT_STORE_URL",
    )
    # Realtime-database style stores address a record as `<path>.json`
    suffix: str = Field(default=".json", alias="SHIPMENT_STORE_SUFFIX")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class ExplorerConfig(BaseSettings):
    """Token explorer configuration."""

    url: str = Field(default="https://etherscan.io", alias="TOKEN_EXPLORER_URL")
    contract_address: str = Field(
        default="0x7F02cCB62e466962c6e929691B159E0369eb5a6a",
        alias="CUSTODY_CONTRACT_ADDRESS",
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: str = Field(default="production", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Component configurations
    store: StoreConfig = Field(default_factory=StoreConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)

    # Network settings
    request_timeout: float = Field(default=30.0, alias="REQUEST_TIMEOUT")

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes")
        return bool(v)

    def model_post_init(self, __context) -> None:
        # Initialize sub-configurations
        self.store = StoreConfig()
        self.explorer = ExplorerConfig()

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def validate_required_settings() -> List[str]:
    """
    Validate that the settings needed to resolve and disclose shipments are present.

    Returns:
        List of missing or invalid settings
    """
    missing = []
    try:
        config = get_settings()

        if not config.store.url:
            missing.append("SHIPMENT_STORE_URL")
        elif not config.store.url.startswith(("http://", "https://")):
            missing.append("SHIPMENT_STORE_URL (must be an http(s) URL)")
        if not config.explorer.url:
            missing.append("TOKEN_EXPLORER_URL")
        if not config.explorer.contract_address:
            missing.append("CUSTODY_CONTRACT_ADDRESS")
        if config.request_timeout <= 0:
            missing.append("REQUEST_TIMEOUT (must be positive)")

    except Exception as e:
        missing.append(f"Configuration error: {e}")

    return missing


def print_configuration_summary():
    """Print a summary of the current configuration for debugging."""
    try:
        config = get_settings()
        print("=== Blockship Configuration Summary ===")
        print(f"Environment: {config.environment}")
        print(f"Debug Mode: {config.debug}")
        print(f"Request Timeout: {config.request_timeout}s")
        print()
        print(f"Shipment Store: {config.store.url}")
        print(f"Record Suffix: {config.store.suffix or '(none)'}")
        print(f"Token Explorer: {config.explorer.url}")
        print(f"Custody Contract: {config.explorer.contract_address}")
        print("=" * 39)
    except Exception as e:
        print(f"Error loading configuration: {e}")
