"""Configuration module for SupplyFinder."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
