"""Service module for SupplyFinder."""

from .lookup import GREETING_PREFIX, GreeterService, LookupService

__all__ = ["GREETING_PREFIX", "GreeterService", "LookupService"]
