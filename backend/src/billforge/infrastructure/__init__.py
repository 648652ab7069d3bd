"""
Infrastructure package - Record storage backends.

The in-memory store needs nothing installed beyond the package; the SQL
store is imported from ``billforge.infrastructure.database`` on demand.
"""

from .store import COLLECTIONS, InMemoryRecordStore, Record, RecordStore

__all__ = ["COLLECTIONS", "InMemoryRecordStore", "Record", "RecordStore"]
