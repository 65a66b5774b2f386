"""
Database schema definitions for the league draft tables.
"""

import logging
import sqlite3
from pathlib import Path

from .connection import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

TABLES = ("users", "seasons", "divisions", "teams", "drafts", "audit_log")


def create_tables(db_path: str = DEFAULT_DB_PATH) -> bool:
    """
    Create the database tables used by the draft importer.

    Args:
        db_path: Path to SQLite database file

    Returns:
        True if tables created successfully, False otherwise
    """
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        with sqlite3.connect(db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    preferred_name TEXT,                    -- NULL when the player has no nickname
                    email TEXT UNIQUE,
                    created_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS seasons (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    code TEXT NOT NULL,                     -- e.g. F24
                    year INTEGER NOT NULL,
                    season TEXT NOT NULL,                   -- fall, spring, summer
                    UNIQUE(season, year)
                );
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS divisions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,              -- A, AA, AB, ABA, ...
                    level INTEGER NOT NULL,                 -- 1 = top division
                    active BOOLEAN DEFAULT TRUE
                );
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS teams (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    season INTEGER NOT NULL REFERENCES seasons(id),
                    captain TEXT NOT NULL REFERENCES users(id),
                    division INTEGER NOT NULL REFERENCES divisions(id),
                    name TEXT NOT NULL,
                    number INTEGER,                         -- draft position 1..N
                    rank INTEGER
                );
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS drafts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    team INTEGER NOT NULL REFERENCES teams(id),
                    user TEXT NOT NULL REFERENCES users(id),
                    round INTEGER NOT NULL,
                    overall INTEGER NOT NULL
                );
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS audit_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user TEXT REFERENCES users(id),
                    action TEXT NOT NULL,
                    entity_type TEXT,
                    entity_id TEXT,
                    summary TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );
            """)

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_users_last_name ON users(last_name COLLATE NOCASE);")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_teams_season_division ON teams(season, division);")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_drafts_team ON drafts(team);")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_drafts_user ON drafts(user);")

            conn.commit()
            return True

    except sqlite3.Error as e:
        logger.error("Error creating database tables: %s", e)
        return False


def drop_tables(db_path: str = DEFAULT_DB_PATH) -> bool:
    """
    Drop all tables in the database (for testing/reset purposes).

    Args:
        db_path: Path to SQLite database file

    Returns:
        True if tables dropped successfully, False otherwise
    """
    try:
        with sqlite3.connect(db_path) as conn:
            cursor = conn.cursor()

            # Children first so foreign keys never dangle
            for table in reversed(TABLES):
                cursor.execute(f"DROP TABLE IF EXISTS {table};")

            conn.commit()
            return True

    except sqlite3.Error as e:
        logger.error("Error dropping database tables: %s", e)
        return False


def verify_schema(db_path: str = DEFAULT_DB_PATH) -> dict:
    """
    Verify that the database schema exists.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Dict with verification results
    """
    try:
        with sqlite3.connect(db_path) as conn:
            cursor = conn.cursor()

            placeholders = ','.join(['?'] * len(TABLES))
            cursor.execute(
                f"SELECT name FROM sqlite_master WHERE type='table' AND name IN ({placeholders});",
                TABLES
            )
            tables = {row[0] for row in cursor.fetchall()}

            results = {
                'tables_exist': len(tables) == len(TABLES),
                'missing_tables': [t for t in TABLES if t not in tables],
                'indexes': []
            }

            cursor.execute("""
                SELECT name FROM sqlite_master
                WHERE type='index' AND name LIKE 'idx_%';
            """)
            results['indexes'] = [row[0] for row in cursor.fetchall()]

            return results

    except sqlite3.Error as e:
        return {'error': str(e)}
