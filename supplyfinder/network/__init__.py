"""Network module for SupplyFinder."""

from .tcp_server import LookupServer

__all__ = ["LookupServer"]
