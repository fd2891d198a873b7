"""
SupplyFinder Configuration Settings

This module contains all configuration constants for the SupplyFinder
servers and client. Values can be overridden through environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server and client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("SUPPLYFINDER_HOST", "0.0.0.0")
    SUPPLIER_PORT: int = int(os.environ.get("SUPPLYFINDER_SUPPLIER_PORT", "50051"))
    VENDOR_PORT: int = int(os.environ.get("SUPPLYFINDER_VENDOR_PORT", "50052"))

    # Client endpoints
    SUPPLIER_TARGET: str = os.environ.get("SUPPLYFINDER_TARGET", "localhost:50051")
    VENDOR_TARGET: str = os.environ.get("SUPPLYFINDER_VENDOR_TARGET", "localhost:50052")

    # Protocol limits
    MAX_NAME_LENGTH: int = 256
    READ_BUFFER_SIZE: int = 4096

    # Client timeouts (seconds)
    CONNECT_TIMEOUT: float = float(os.environ.get("SUPPLYFINDER_CONNECT_TIMEOUT", "5.0"))
    CALL_TIMEOUT: float = float(os.environ.get("SUPPLYFINDER_CALL_TIMEOUT", "5.0"))

    # Logging settings
    DEBUG: bool = os.environ.get("SUPPLYFINDER_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("SUPPLYFINDER_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
