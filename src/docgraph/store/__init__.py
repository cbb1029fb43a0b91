"""Index store: the persistence facade of docgraph (SQLite FTS5)."""

from docgraph.store.base import BaseIndexStore
from docgraph.store.sqlite import SCHEMA, SqliteIndexStore

__all__ = ["SCHEMA", "BaseIndexStore", "SqliteIndexStore"]
