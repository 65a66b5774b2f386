import pytest

from draft_import.database.connection import close_all_connections
from draft_import.database.crud_operations import create_division, create_season, create_user
from draft_import.database.schema import create_tables
from draft_import.matching.name_processing import Candidate

ROSTER = [
    Candidate("u-jones-robert", "Robert", "Jones", "Bob"),
    Candidate("u-smith-john", "John", "Smith", None),
    Candidate("u-smith-jane", "Jane", "Smith", None),
    Candidate("u-public-john", "John", "Public", None),
    Candidate("u-garcia-maria", "Maria", "Garcia", None),
    Candidate("u-lee-kim", "Kim", "Lee", None),
]


@pytest.fixture
def roster():
    return list(ROSTER)


@pytest.fixture
def db_path(tmp_path):
    """Fresh league database with the schema created."""
    path = str(tmp_path / "league.db")
    assert create_tables(path)
    yield path
    close_all_connections()


@pytest.fixture
def league_db(db_path):
    """Database with fall 2024, divisions A (level 1) and BB (level 3), and 48 players."""
    create_season("fall", 2024, db_path=db_path)
    create_division("A", 1, db_path=db_path)
    create_division("BB", 3, db_path=db_path)
    for team in range(1, 7):
        for slot in range(1, 9):
            create_user(f"t{team}p{slot}", f"First{team}{slot}", f"Last{team}{slot}", db_path=db_path)
    return db_path


@pytest.fixture
def six_team_csv():
    """Builder for a 6-team batch sheet whose captain is the first player of each team."""
    def build(captain_row=None, player_rows=8):
        lines = [
            "F24BB Draft,,,,,,",
            "1,2,3,4,5,6,,",
            captain_row if captain_row is not None else ",".join(f"Last{t}1" for t in range(1, 7)),
        ]
        for slot in range(1, player_rows + 1):
            lines.append(",".join(f"\"Last{t}{slot}, First{t}{slot}\"" for t in range(1, 7)))
        return "\n".join(lines) + "\n"

    return build
