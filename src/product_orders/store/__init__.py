"""Product order persistence package.

Provides the SQLite schema, the transactional repository, the influencer
directory, and the participant query / order projection objects they share.
"""

from product_orders.store.directory import SqliteUserDirectory
from product_orders.store.errors import DuplicateRecordError
from product_orders.store.query import OrderProjection, ParticipantQuery
from product_orders.store.repository import SqliteRepository
from product_orders.store.schema import init_lifecycle_tables, open_database

__all__ = [
    "DuplicateRecordError",
    "OrderProjection",
    "ParticipantQuery",
    "SqliteRepository",
    "SqliteUserDirectory",
    "init_lifecycle_tables",
    "open_database",
]
