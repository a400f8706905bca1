"""
Connection Management Module

Exports ConnectionRegistry and LiveConnection.
"""
from .models import LiveConnection
from .registry import ConnectionRegistry

# Singleton instance
connection_registry = ConnectionRegistry()

__all__ = [
    "LiveConnection",
    "ConnectionRegistry",
    "connection_registry",
]
