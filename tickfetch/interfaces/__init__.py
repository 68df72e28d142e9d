"""
Abstract base classes for the feed client.
"""

from tickfetch.interfaces.connection_provider import Connection, ConnectionProvider

__all__ = ["Connection", "ConnectionProvider"]
