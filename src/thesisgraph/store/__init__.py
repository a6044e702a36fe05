"""Store module - Persistence of theses behind a transactional interface.

Exports:
- GraphStore: Base class with reading()/writing() context managers
- ReadTransaction, WriteTransaction: Transaction protocols
- SQLiteGraphStore: SQLite implementation
"""

from thesisgraph.store.base import GraphStore, ReadTransaction, WriteTransaction
from thesisgraph.store.sqlite import SQLiteGraphStore

__all__ = [
    "GraphStore",
    "ReadTransaction",
    "WriteTransaction",
    "SQLiteGraphStore",
]
