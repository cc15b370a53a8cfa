"""
Local Store Adapters - Durable client-side storage.
"""

from .sqlite import SQLiteLocalStore

__all__ = ["SQLiteLocalStore"]
