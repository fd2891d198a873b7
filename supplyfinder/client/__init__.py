"""Client module for SupplyFinder."""

from .stub import Connection, SupplyFinderClient, parse_target

__all__ = ["Connection", "SupplyFinderClient", "parse_target"]
