"""
Database Package.

Async SQLAlchemy plumbing shared by the retention stores.
ORM models live next to the store that owns them.
"""

from .engine import (
    Base,
    create_database_engine,
    create_session_factory,
    transaction_scope,
    verify_database_connection,
    create_all_tables,
)


__all__ = [
    "Base",
    "create_database_engine",
    "create_session_factory",
    "transaction_scope",
    "verify_database_connection",
    "create_all_tables",
]
