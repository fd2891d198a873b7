"""
SupplyFinder: Vendor Lookup Service

A small request-routing lookup service built with Python asyncio.
Clients greet supplier and vendor servers and look up vendor records
held in an in-memory registry, over raw TCP sockets.
"""

__version__ = "1.0.0"
