"""
CRUD operations for the league database.
"""

import logging
import sqlite3
from typing import Optional, List, Dict, Any, NamedTuple

from .connection import get_db_connection, DEFAULT_DB_PATH
from ..matching.name_processing import Candidate, normalize_name

logger = logging.getLogger(__name__)


class ReferenceDataError(Exception):
    """Raised when a sheet's season or division is not in the database."""


class PersistenceError(Exception):
    """Raised when the database rejects a sheet's teams or draft picks."""


class SheetReferences(NamedTuple):
    """Database ids a draft sheet resolves to."""
    season_id: int
    division_id: int
    division_level: int


def _row_to_candidate(row) -> Candidate:
    return Candidate(
        id=row['id'],
        first_name=row['first_name'],
        last_name=row['last_name'],
        preferred_name=row['preferred_name']
    )


def get_all_users(db_path: str = DEFAULT_DB_PATH) -> List[Candidate]:
    """
    Load the full roster used for name matching.

    Args:
        db_path: Path to database file

    Returns:
        List of Candidate ordered by last then first name
    """
    db = get_db_connection(db_path)

    query = """
        SELECT id, first_name, last_name, preferred_name
        FROM users
        ORDER BY last_name COLLATE NOCASE, first_name COLLATE NOCASE
    """
    return [_row_to_candidate(row) for row in db.execute_query(query)]


def get_user_by_id(user_id: str, db_path: str = DEFAULT_DB_PATH) -> Optional[Candidate]:
    """
    Get a user by id.

    Returns:
        Candidate or None if not found
    """
    db = get_db_connection(db_path)

    query = "SELECT id, first_name, last_name, preferred_name FROM users WHERE id = ?"
    result = db.execute_query(query, (user_id,))

    return _row_to_candidate(result[0]) if result else None


def create_user(
    user_id: str,
    first_name: str,
    last_name: str,
    preferred_name: Optional[str] = None,
    email: Optional[str] = None,
    db_path: str = DEFAULT_DB_PATH
) -> str:
    """
    Create a user.

    Args:
        user_id: Opaque user id
        first_name: First name
        last_name: Last name
        preferred_name: Optional nickname
        email: Optional email address
        db_path: Path to database file

    Returns:
        The user id
    """
    db = get_db_connection(db_path)

    query = """
        INSERT INTO users (id, first_name, last_name, preferred_name, email)
        VALUES (?, ?, ?, ?, ?)
    """
    db.execute_insert(query, (user_id, first_name, last_name, preferred_name or None, email))
    return user_id


SEASON_LETTERS = {'fall': 'F', 'spring': 'S', 'summer': 'U'}


def season_code(season: str, year: int) -> str:
    """Season code as used in sheet filenames, e.g. F24 for fall 2024."""
    season = season.lower()
    letter = SEASON_LETTERS.get(season, season[:1].upper())
    return f"{letter}{year % 100:02d}"


def create_season(season: str, year: int, code: Optional[str] = None, db_path: str = DEFAULT_DB_PATH) -> int:
    """Create a season and return its id."""
    db = get_db_connection(db_path)

    query = "INSERT INTO seasons (code, year, season) VALUES (?, ?, ?)"
    return db.execute_insert(query, (code or season_code(season, year), year, season.lower()))


def create_division(name: str, level: int, active: bool = True, db_path: str = DEFAULT_DB_PATH) -> int:
    """Create a division and return its id."""
    db = get_db_connection(db_path)

    query = "INSERT INTO divisions (name, level, active) VALUES (?, ?, ?)"
    return db.execute_insert(query, (name, level, active))


def lookup_season_and_division(
    season: str,
    year: int,
    division_name: str,
    db_path: str = DEFAULT_DB_PATH
) -> SheetReferences:
    """
    Resolve a sheet's season and division to database ids.

    Args:
        season: Season name (fall, spring, summer)
        year: Four-digit year
        division_name: Division name as written in the sheet
        db_path: Path to database file

    Returns:
        SheetReferences

    Raises:
        ReferenceDataError: If the season or division does not exist
    """
    db = get_db_connection(db_path)

    season_rows = db.execute_query(
        "SELECT id FROM seasons WHERE season = ? AND year = ? LIMIT 1",
        (season.lower(), year)
    )
    if not season_rows:
        raise ReferenceDataError(f"Season \"{season} {year}\" not found in database")

    division_rows = db.execute_query(
        "SELECT id, level FROM divisions WHERE name = ? LIMIT 1",
        (division_name,)
    )
    if not division_rows:
        raise ReferenceDataError(f"Division \"{division_name}\" not found in database")

    return SheetReferences(
        season_id=season_rows[0]['id'],
        division_id=division_rows[0]['id'],
        division_level=division_rows[0]['level']
    )


def _insert_audit_entry(cursor: sqlite3.Cursor, action: str, summary: str,
                        entity_type: Optional[str], entity_id: Optional[str],
                        user_id: Optional[str]) -> int:
    cursor.execute(
        """
        INSERT INTO audit_log (user, action, entity_type, entity_id, summary)
        VALUES (?, ?, ?, ?, ?)
        """,
        (user_id, action, entity_type, entity_id, summary)
    )
    return cursor.lastrowid


def log_audit_entry(
    action: str,
    summary: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    db_path: str = DEFAULT_DB_PATH
) -> int:
    """
    Record an administrative action in the audit log.

    Returns:
        Audit log entry id
    """
    db = get_db_connection(db_path)
    with db.get_cursor() as cursor:
        return _insert_audit_entry(cursor, action, summary, entity_type, entity_id, user_id)


def get_audit_entries(action: Optional[str] = None, db_path: str = DEFAULT_DB_PATH) -> List[Dict[str, Any]]:
    """Get audit log entries, newest first, optionally for one action."""
    db = get_db_connection(db_path)

    query = "SELECT id, user, action, entity_type, entity_id, summary, created_at FROM audit_log"
    params: tuple = ()
    if action is not None:
        query += " WHERE action = ?"
        params = (action,)
    query += " ORDER BY id DESC"

    return [dict(row) for row in db.execute_query(query, params)]


def insert_draft(
    team_records: List[Dict[str, Any]],
    draft_picks: List[Dict[str, Any]],
    audit_summary: Optional[str] = None,
    db_path: str = DEFAULT_DB_PATH
) -> List[int]:
    """
    Insert a sheet's teams and draft picks as one transaction.

    Teams are inserted first; each pick's 'team_number' is then mapped to the
    id of the team just created. Nothing is written if any statement fails.

    Args:
        team_records: Dicts with season_id, captain_id, division_id, name, team_number
        draft_picks: Dicts with team_number, user_id, round, overall
        audit_summary: Optional audit log summary written in the same transaction
        db_path: Path to database file

    Returns:
        Ids of the created teams, in team_records order

    Raises:
        PersistenceError: If the transaction was rejected
    """
    db = get_db_connection(db_path)

    try:
        with db.get_cursor() as cursor:
            team_ids: Dict[int, int] = {}
            for record in team_records:
                cursor.execute(
                    """
                    INSERT INTO teams (season, captain, division, name, number)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (record['season_id'], record['captain_id'], record['division_id'],
                     record['name'], record['team_number'])
                )
                team_ids[record['team_number']] = cursor.lastrowid

            rows = []
            for pick in draft_picks:
                if pick['team_number'] not in team_ids:
                    raise PersistenceError(f"Draft pick refers to unknown team number {pick['team_number']}")
                rows.append((team_ids[pick['team_number']], pick['user_id'], pick['round'], pick['overall']))

            cursor.executemany(
                "INSERT INTO drafts (team, user, round, overall) VALUES (?, ?, ?, ?)",
                rows
            )

            if audit_summary:
                _insert_audit_entry(cursor, 'import_draft', audit_summary, 'teams',
                                    ','.join(str(i) for i in team_ids.values()), None)

            return [team_ids[record['team_number']] for record in team_records]

    except sqlite3.Error as e:
        logger.exception("Draft insert rolled back")
        raise PersistenceError(f"Database rejected draft import: {e}") from e


def get_teams_for_season_and_division(
    season_id: int,
    division_id: int,
    db_path: str = DEFAULT_DB_PATH
) -> List[Dict[str, Any]]:
    """Get the teams of one division in one season, by team number."""
    db = get_db_connection(db_path)

    query = """
        SELECT id, name, number, captain
        FROM teams
        WHERE season = ? AND division = ?
        ORDER BY number
    """
    return [dict(row) for row in db.execute_query(query, (season_id, division_id))]


def get_draft_picks(team_ids: List[int], db_path: str = DEFAULT_DB_PATH) -> List[Dict[str, Any]]:
    """
    Get the draft picks of several teams ordered by overall pick.

    Args:
        team_ids: Team ids to look up
        db_path: Path to database file

    Returns:
        List of dicts with team, user, round, overall
    """
    if not team_ids:
        return []

    db = get_db_connection(db_path)

    placeholders = ','.join(['?'] * len(team_ids))
    query = f"""
        SELECT team, user, round, overall
        FROM drafts
        WHERE team IN ({placeholders})
        ORDER BY overall
    """
    return [dict(row) for row in db.execute_query(query, tuple(team_ids))]


def clean_preferred_names(dry_run: bool = False, db_path: str = DEFAULT_DB_PATH) -> List[Dict[str, Any]]:
    """
    Clear preferred names that merely repeat the first name.

    Such values add nothing to matching and make users look like they have
    a nickname when listed as candidates.

    Args:
        dry_run: Only report what would change
        db_path: Path to database file

    Returns:
        The users whose preferred name was (or would be) cleared
    """
    db = get_db_connection(db_path)

    rows = db.execute_query(
        "SELECT id, first_name, preferred_name FROM users WHERE preferred_name IS NOT NULL"
    )
    to_update = [
        dict(row) for row in rows
        if normalize_name(row['preferred_name']) == normalize_name(row['first_name'])
    ]

    print(f"Found {len(to_update)} user(s) whose preferred name matches their first name "
          f"(out of {len(rows)} with a preferred name set).")

    if dry_run or not to_update:
        return to_update

    with db.get_cursor() as cursor:
        for row in to_update:
            print(f"  Clearing \"{row['preferred_name']}\" for user {row['id']} (first name: \"{row['first_name']}\")")
            cursor.execute("UPDATE users SET preferred_name = NULL WHERE id = ?", (row['id'],))

    return to_update
