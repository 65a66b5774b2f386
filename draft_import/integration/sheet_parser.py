"""
Parsing of draft sheets into teams, captains and player slots.

Two input grammars are supported:

* CSV batch sheets named ``[F|S|U]YY<Division>``, where a marker row of team
  numbers (``1,2,3,4,5,6`` or ``1,2,3,4``) is followed by a row of captain
  last names and a fixed number of player rows.
* Free-form pastes: ``Season Year Division`` on the first line, tab-separated
  captain last names on the second, tab-separated player rows after that.
"""

import csv
import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

from ..matching.name_processing import Candidate, ParsedName, parse_name

logger = logging.getLogger(__name__)

PLAYERS_PER_TEAM = 8
SIX_TEAM_MARKER = ["1", "2", "3", "4", "5", "6"]
FOUR_TEAM_MARKER = ["1", "2", "3", "4"]


class ParseError(ValueError):
    """Raised when a draft sheet does not have the expected structure."""


class Season(Enum):
    FALL = "fall"
    SPRING = "spring"
    SUMMER = "summer"


SEASON_LETTERS = {"F": Season.FALL, "S": Season.SPRING, "U": Season.SUMMER}


class SheetFormat(Enum):
    CSV = "csv"
    FREE_FORM = "free_form"


class ResolvedPlayer:
    """A player slot in a team: the sheet name and the user it resolved to."""

    def __init__(self, name: ParsedName, user: Optional[Candidate] = None):
        self.name = name
        self.user = user

    def resolve(self, user: Candidate):
        if self.user is not None:
            raise ValueError(f"Player \"{self.name.original}\" is already resolved")
        self.user = user

    def __repr__(self):
        return f"ResolvedPlayer({self.name.original!r}, user={self.user.id if self.user else None!r})"


class TeamDraft:
    """One team column of a draft sheet. Player order is draft round order."""

    def __init__(self, captain_last_name: str, players: Optional[List[ResolvedPlayer]] = None):
        self.captain_last_name = captain_last_name
        self.players: List[ResolvedPlayer] = players or []
        self.captain: Optional[Candidate] = None
        self.team_name = ""

    def set_captain(self, captain: Candidate):
        self.captain = captain
        self.team_name = f"Team {captain.last_name}"

    def is_resolved(self) -> bool:
        return self.captain is not None and all(p.user is not None for p in self.players)


class DraftSheet:
    """A parsed draft sheet. Team order is draft position order (1..N)."""

    def __init__(self, season: Season, year: int, division_name: str,
                 teams: List[TeamDraft], source_name: str = "input"):
        self.season = season
        self.year = year
        self.division_name = division_name
        self.teams = teams
        self.source_name = source_name

    @property
    def num_teams(self) -> int:
        return len(self.teams)

    @property
    def num_rounds(self) -> int:
        return max((len(team.players) for team in self.teams), default=0)

    @property
    def label(self) -> str:
        return f"{self.season.value} {self.year} {self.division_name}"

    def is_resolved(self) -> bool:
        return all(team.is_resolved() for team in self.teams)


def expand_two_digit_year(year_digits: int) -> int:
    """00-49 map to the 2000s, 50-99 to the 1900s."""
    return 2000 + year_digits if year_digits < 50 else 1900 + year_digits


def parse_filename(filename: str) -> Tuple[Season, int, str]:
    """
    Derive season, year and division from a batch sheet filename.

    Args:
        filename: e.g. "F24AA" or "S98B.csv"

    Returns:
        (season, four-digit year, division name)

    Raises:
        ParseError: If any part is missing or invalid
    """
    stem = os.path.splitext(os.path.basename(filename))[0]
    if not stem:
        raise ParseError(f"Empty filename \"{filename}\"")

    season = SEASON_LETTERS.get(stem[0].upper())
    if season is None:
        raise ParseError(f"Unknown season letter \"{stem[0]}\" in filename \"{filename}\"")

    year_str = stem[1:3]
    if len(year_str) != 2 or not year_str.isdecimal():
        raise ParseError(f"Invalid year \"{year_str}\" in filename \"{filename}\"")

    division_name = stem[3:]
    if not division_name:
        raise ParseError(f"No division found in filename \"{filename}\"")

    return season, expand_two_digit_year(int(year_str)), division_name


def _add_player_row(teams: List[TeamDraft], cells: List[str]):
    for team, cell in zip(teams, cells):
        name_str = cell.strip()
        if name_str:
            team.players.append(ResolvedPlayer(parse_name(name_str)))


class SheetGrammar(ABC):
    """Strategy for one draft sheet input format."""

    def __init__(self, players_per_team: int = PLAYERS_PER_TEAM):
        self.players_per_team = players_per_team

    @abstractmethod
    def parse(self, raw_text: str, filename: Optional[str] = None) -> DraftSheet:
        """Parse raw sheet text into a DraftSheet."""


class CsvSheetGrammar(SheetGrammar):
    """Fixed-layout CSV sheets from the batch drafts directory."""

    @staticmethod
    def split_rows(raw_text: str) -> List[List[str]]:
        return [next(csv.reader([line]), []) for line in raw_text.splitlines()]

    @staticmethod
    def find_marker_row(rows: List[List[str]]) -> Tuple[int, int]:
        """
        Find the row of team numbers that anchors the table.

        The 6-team marker is checked first. A 4-team marker only counts when
        its fifth cell is absent or empty.

        Returns:
            (row index, number of teams)
        """
        for idx, row in enumerate(rows):
            cells = [cell.strip() for cell in row]

            if cells[:6] == SIX_TEAM_MARKER:
                return idx, 6

            if cells[:4] == FOUR_TEAM_MARKER and (len(cells) < 5 or cells[4] == ""):
                return idx, 4

        raise ParseError("Could not find team number marker row (1,2,3,4...)")

    def parse(self, raw_text: str, filename: Optional[str] = None) -> DraftSheet:
        if not filename:
            raise ParseError("CSV draft sheets need a filename to derive season and division")

        season, year, division_name = parse_filename(filename)
        rows = self.split_rows(raw_text)

        try:
            marker_idx, num_teams = self.find_marker_row(rows)
        except ParseError as e:
            raise ParseError(f"{e} in file \"{filename}\"") from None

        captain_idx = marker_idx + 1
        if captain_idx >= len(rows):
            raise ParseError(f"Captain row missing in file \"{filename}\"")

        captain_cells = rows[captain_idx]
        captain_last_names = [
            (captain_cells[t] if t < len(captain_cells) else "").strip()
            for t in range(num_teams)
        ]
        if any(not name for name in captain_last_names):
            raise ParseError(f"Missing captain name in file \"{filename}\": [{', '.join(captain_last_names)}]")

        teams = [TeamDraft(last_name) for last_name in captain_last_names]

        # Short files simply leave the remaining slots empty
        for row in rows[captain_idx + 1:captain_idx + 1 + self.players_per_team]:
            _add_player_row(teams, row[:num_teams])

        logger.debug("Parsed %s: %d teams, marker at row %d", filename, num_teams, marker_idx)
        return DraftSheet(season, year, division_name, teams, source_name=os.path.basename(filename))


class FreeFormSheetGrammar(SheetGrammar):
    """Tab-separated pastes with a 'Season Year Division' header line."""

    def parse(self, raw_text: str, filename: Optional[str] = None) -> DraftSheet:
        lines = [line for line in raw_text.strip().splitlines() if line.strip()]

        if len(lines) < 3:
            raise ParseError("Input must have at least 3 lines: header, captains, and players")

        header_parts = lines[0].split()
        if len(header_parts) < 3:
            raise ParseError(f"Invalid header format: \"{lines[0]}\". Expected \"Season Year Division\"")

        try:
            season = Season(header_parts[0].lower())
        except ValueError:
            raise ParseError(f"Unknown season \"{header_parts[0]}\" in header") from None

        if not header_parts[1].isdecimal():
            raise ParseError(f"Invalid year in header: \"{header_parts[1]}\"")
        year = int(header_parts[1])
        division_name = " ".join(header_parts[2:])

        captain_last_names = [name.strip() for name in lines[1].split("\t") if name.strip()]
        if not captain_last_names:
            raise ParseError("No captain last names found on line 2")

        teams = [TeamDraft(last_name) for last_name in captain_last_names]
        for line in lines[2:]:
            _add_player_row(teams, line.split("\t")[:len(teams)])

        return DraftSheet(season, year, division_name, teams, source_name=filename or "input")


GRAMMARS = {
    SheetFormat.CSV: CsvSheetGrammar,
    SheetFormat.FREE_FORM: FreeFormSheetGrammar,
}


def detect_format(path: str) -> SheetFormat:
    """Text and TSV files are free-form pastes; anything else is a batch CSV."""
    ext = os.path.splitext(path)[1].lower()
    return SheetFormat.FREE_FORM if ext in ('.txt', '.tsv') else SheetFormat.CSV


def parse_sheet(
    raw_text: str,
    sheet_format: SheetFormat = SheetFormat.CSV,
    filename: Optional[str] = None,
    players_per_team: int = PLAYERS_PER_TEAM
) -> DraftSheet:
    """
    Parse a draft sheet.

    Args:
        raw_text: Sheet contents
        sheet_format: Input grammar to use
        filename: Sheet filename (required for CSV sheets)
        players_per_team: Player rows read after the captain row (CSV only)

    Returns:
        DraftSheet with unresolved players

    Raises:
        ParseError: If the sheet structure is invalid
    """
    grammar = GRAMMARS[sheet_format](players_per_team)
    return grammar.parse(raw_text, filename)
