"""State stores."""

from unoengine.store.base import StateStore
from unoengine.store.memory import MemoryStore
from unoengine.store.sqlite import SqliteStore

MEMORY = "memory"


def open_store(target: str = MEMORY) -> StateStore:
    """Open a store: "memory" for an in-process one, anything else is a SQLite path."""
    if target == MEMORY:
        return MemoryStore()
    return SqliteStore(target)


__all__ = ["StateStore", "MemoryStore", "SqliteStore", "open_store", "MEMORY"]
