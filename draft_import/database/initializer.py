"""
Database initialization and bulk seeding of reference data from CSV exports.
"""

import logging
import sqlite3
import pandas as pd
from typing import Dict, Optional
from tqdm import tqdm

from .connection import get_db_connection, DEFAULT_DB_PATH
from .crud_operations import season_code
from .schema import create_tables, verify_schema

logger = logging.getLogger(__name__)

USER_COLUMNS = ["id", "first_name", "last_name"]
SEASON_COLUMNS = ["year", "season"]
DIVISION_COLUMNS = ["name", "level"]


def _read_export(path: str, required_columns: list) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [col.strip() for col in df.columns]

    # The users export from the web app still spells this column "preffered_name"
    df = df.rename(columns={"preffered_name": "preferred_name"})

    missing = [col for col in required_columns if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in {path}: {missing}")

    for col in df.columns:
        df[col] = df[col].str.strip()

    return df


def _valid_rows(df: pd.DataFrame, required_columns: list) -> pd.DataFrame:
    valid = (df[required_columns] != "").all(axis=1)
    return df[valid]


def initialize_database(db_path: str = DEFAULT_DB_PATH) -> bool:
    """
    Create the schema if needed and check it.

    Args:
        db_path: Path to SQLite database file

    Returns:
        True if every table exists afterwards
    """
    if not create_tables(db_path):
        return False
    verification = verify_schema(db_path)
    if not verification.get('tables_exist'):
        logger.error("Schema verification failed: %s", verification)
        return False
    return True


def seed_users(path: str, db_path: str = DEFAULT_DB_PATH) -> Dict[str, int]:
    """
    Load users from a CSV export.

    Rows missing an id, first name or last name are skipped. Existing ids
    are left untouched.

    Args:
        path: CSV with id, first_name, last_name and optional preferred_name, email
        db_path: Path to SQLite database file

    Returns:
        Stats dict with inserted/skipped/existing counts
    """
    df = _read_export(path, USER_COLUMNS)
    valid_df = _valid_rows(df, USER_COLUMNS)
    stats = {'inserted': 0, 'skipped': len(df) - len(valid_df), 'existing': 0}

    db = get_db_connection(db_path)
    with db.get_cursor() as cursor:
        for row in tqdm(valid_df.itertuples(index=False), total=len(valid_df), desc="Seeding users", unit="users"):
            preferred = getattr(row, 'preferred_name', "") or None
            email = getattr(row, 'email', "") or None
            cursor.execute(
                """
                INSERT OR IGNORE INTO users (id, first_name, last_name, preferred_name, email)
                VALUES (?, ?, ?, ?, ?)
                """,
                (row.id, row.first_name, row.last_name, preferred, email)
            )
            if cursor.rowcount:
                stats['inserted'] += 1
            else:
                stats['existing'] += 1

    if stats['skipped']:
        logger.warning("Skipped %d user rows with missing names or ids", stats['skipped'])
    return stats


def seed_seasons(path: str, db_path: str = DEFAULT_DB_PATH) -> Dict[str, int]:
    """
    Load seasons from a CSV export with year, season and optional code.

    Returns:
        Stats dict with inserted/skipped/existing counts
    """
    df = _read_export(path, SEASON_COLUMNS)
    valid_df = _valid_rows(df, SEASON_COLUMNS)
    valid_df = valid_df[valid_df["year"].str.isdecimal()]
    stats = {'inserted': 0, 'skipped': len(df) - len(valid_df), 'existing': 0}

    db = get_db_connection(db_path)
    with db.get_cursor() as cursor:
        for row in tqdm(valid_df.itertuples(index=False), total=len(valid_df), desc="Seeding seasons", unit="seasons"):
            season = row.season.lower()
            year = int(row.year)
            code = getattr(row, 'code', "") or season_code(season, year)
            cursor.execute(
                "INSERT OR IGNORE INTO seasons (code, year, season) VALUES (?, ?, ?)",
                (code, year, season)
            )
            if cursor.rowcount:
                stats['inserted'] += 1
            else:
                stats['existing'] += 1

    return stats


def seed_divisions(path: str, db_path: str = DEFAULT_DB_PATH) -> Dict[str, int]:
    """
    Load divisions from a CSV export with name, level and optional active.

    Returns:
        Stats dict with inserted/skipped/existing counts
    """
    df = _read_export(path, DIVISION_COLUMNS)
    valid_df = _valid_rows(df, DIVISION_COLUMNS)
    valid_df = valid_df[valid_df["level"].str.isdecimal()]
    stats = {'inserted': 0, 'skipped': len(df) - len(valid_df), 'existing': 0}

    db = get_db_connection(db_path)
    with db.get_cursor() as cursor:
        for row in tqdm(valid_df.itertuples(index=False), total=len(valid_df), desc="Seeding divisions", unit="divisions"):
            active = str(getattr(row, 'active', "true")).lower() not in ('false', '0', 'f', 'no')
            cursor.execute(
                "INSERT OR IGNORE INTO divisions (name, level, active) VALUES (?, ?, ?)",
                (row.name, int(row.level), active)
            )
            if cursor.rowcount:
                stats['inserted'] += 1
            else:
                stats['existing'] += 1

    return stats


def seed_reference_data(
    users_csv: Optional[str] = None,
    seasons_csv: Optional[str] = None,
    divisions_csv: Optional[str] = None,
    db_path: str = DEFAULT_DB_PATH
) -> Dict[str, Dict[str, int]]:
    """
    Initialize the database and load any of the given reference exports.

    Args:
        users_csv: Users export
        seasons_csv: Seasons export
        divisions_csv: Divisions export
        db_path: Path to SQLite database file

    Returns:
        Stats per table that was seeded
    """
    if not initialize_database(db_path):
        raise sqlite3.OperationalError(f"Could not initialize database at {db_path}")

    results = {}
    if seasons_csv:
        results['seasons'] = seed_seasons(seasons_csv, db_path)
    if divisions_csv:
        results['divisions'] = seed_divisions(divisions_csv, db_path)
    if users_csv:
        results['users'] = seed_users(users_csv, db_path)

    for table, stats in results.items():
        print(f"{table}: {stats['inserted']} inserted, {stats['existing']} already present, "
              f"{stats['skipped']} skipped")

    return results
