"""
Configuration management for the edgeX signing library.

Loads settings from environment variables with validation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Private API header names
TIMESTAMP_HEADER = "X-edgeX-Api-Timestamp"
SIGNATURE_HEADER = "X-edgeX-Api-Signature"


class EdgeXSettings(BaseSettings):
    """
    edgeX signing settings.

    Loads from environment variables with EDGEX_ prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="EDGEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # L2 message construction
    allow_partial_fee: bool = Field(
        default=False,
        description="Drop incomplete fee fields instead of rejecting them"
    )

    # Key handling
    key_cache_size: int = Field(
        default=0, ge=0, le=100_000,
        description="Derived key pair LRU size (0 disables caching)"
    )

    # Logging
    debug_signing: bool = Field(
        default=False,
        description="Emit redacted signing trace events (never enable in production)"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Use JSON log formatting")

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"EdgeXSettings("
            f"allow_partial_fee={self.allow_partial_fee}, "
            f"key_cache_size={self.key_cache_size}, "
            f"debug_signing={self.debug_signing}"
            ")"
        )


def get_settings() -> EdgeXSettings:
    """
    Get edgeX settings.

    Returns:
        Validated settings instance
    """
    return EdgeXSettings()
