"""Persistence backends for search history."""
from jurisdiction_finder.stores.history_store import (
    HistoryStore,
    InMemoryHistoryStore,
    SupabaseHistoryStore,
    get_history_store,
)

__all__ = ["HistoryStore", "InMemoryHistoryStore", "SupabaseHistoryStore", "get_history_store"]
