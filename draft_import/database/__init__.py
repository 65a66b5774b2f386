"""
Database management for the league draft tables.
"""

from .connection import get_db_connection, DatabaseConnection, close_all_connections, DEFAULT_DB_PATH
from .schema import create_tables, drop_tables, verify_schema
from .crud_operations import (
    ReferenceDataError,
    PersistenceError,
    SheetReferences,
    get_all_users,
    get_user_by_id,
    create_user,
    create_season,
    create_division,
    lookup_season_and_division,
    insert_draft,
    log_audit_entry,
    clean_preferred_names
)

__all__ = [
    'get_db_connection',
    'DatabaseConnection',
    'close_all_connections',
    'DEFAULT_DB_PATH',
    'create_tables',
    'drop_tables',
    'verify_schema',
    'ReferenceDataError',
    'PersistenceError',
    'SheetReferences',
    'get_all_users',
    'get_user_by_id',
    'create_user',
    'create_season',
    'create_division',
    'lookup_season_and_division',
    'insert_draft',
    'log_audit_entry',
    'clean_preferred_names'
]
