"""
SQLite connection handling for the league database.
"""

import sqlite3
from contextlib import contextmanager
from typing import Optional, Generator
from pathlib import Path


DEFAULT_DB_PATH = "databases/league.db"


class DatabaseConnection:
    """
    Opens a short-lived SQLite connection per unit of work.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """
        Args:
            db_path: League database file (its directory is created if missing)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        """
        Run a block of statements as one transaction.

        Everything executed on the cursor is committed together when the
        block exits normally and rolled back if it raises. Foreign keys are
        enforced.

        Yields:
            sqlite3.Cursor with rows addressable by column name
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            conn.close()

    def execute_query(self, query: str, params: tuple = ()) -> list:
        """Run a SELECT and return every row."""
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchall()

    def execute_insert(self, query: str, params: tuple = ()) -> int:
        """Run a single INSERT and return the new row id."""
        with self.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.lastrowid


_db_connection: Optional[DatabaseConnection] = None


def get_db_connection(db_path: str = DEFAULT_DB_PATH) -> DatabaseConnection:
    """
    Return the shared connection manager, replacing it when db_path changes.

    Args:
        db_path: League database file

    Returns:
        DatabaseConnection for db_path
    """
    global _db_connection

    if _db_connection is None or str(_db_connection.db_path) != str(Path(db_path)):
        _db_connection = DatabaseConnection(db_path)

    return _db_connection


def close_all_connections():
    """Forget the shared connection manager."""
    global _db_connection
    _db_connection = None
