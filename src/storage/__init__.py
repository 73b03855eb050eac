"""
Saved-game storage.

One JSON document per player profile, written atomically.
"""

from .save_store import JsonSaveStore, StorageError

__all__ = [
    "JsonSaveStore",
    "StorageError",
]
