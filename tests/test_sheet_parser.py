import pytest

from draft_import.integration.sheet_parser import (
    CsvSheetGrammar,
    ParseError,
    Season,
    SheetFormat,
    detect_format,
    expand_two_digit_year,
    parse_filename,
    parse_sheet,
)


def test_parse_filename():
    """Season letter, two-digit year and division come from the filename."""
    assert parse_filename("F24AA") == (Season.FALL, 2024, "AA")
    assert parse_filename("s98BBB.csv") == (Season.SPRING, 1998, "BBB")
    assert parse_filename("/home/drafts/U05A") == (Season.SUMMER, 2005, "A")


def test_year_pivot():
    """00-49 are 2000s, 50-99 are 1900s."""
    assert expand_two_digit_year(0) == 2000
    assert expand_two_digit_year(49) == 2049
    assert expand_two_digit_year(50) == 1950
    assert expand_two_digit_year(99) == 1999


@pytest.mark.parametrize("filename", ["X24A", "F2xA", "F²4A", "F24", "F24.csv"])
def test_parse_filename_errors(filename):
    """Bad season letters, years and missing divisions are parse errors."""
    with pytest.raises(ParseError):
        parse_filename(filename)


def test_six_team_sheet(six_team_csv):
    """A 6-team sheet yields 6 teams with 8 players each, in round order."""
    sheet = parse_sheet(six_team_csv(), SheetFormat.CSV, filename="F24BB")

    assert sheet.season is Season.FALL
    assert sheet.year == 2024
    assert sheet.division_name == "BB"
    assert sheet.num_teams == 6
    assert [t.captain_last_name for t in sheet.teams] == [f"Last{t}1" for t in range(1, 7)]
    assert all(len(team.players) == 8 for team in sheet.teams)

    third_team = sheet.teams[2]
    assert [p.name.last_name for p in third_team.players] == [f"Last3{s}" for s in range(1, 9)]
    assert third_team.players[0].name.first_name == "First31"
    assert third_team.players[0].user is None


def test_four_team_sheet():
    """A 1,2,3,4 marker followed by an empty cell is a 4-team sheet."""
    text = "\n".join([
        "Spring 2003,,,,",
        "1,2,3,4,,",
        "Adams,Baker,Clark,Davis,,",
        "Ann Adams,Bob Baker,Cal Clark,Dee Davis,ignored,",
        "Eve Evans,,Fay Ford,Gus Green",
    ])
    sheet = parse_sheet(text, SheetFormat.CSV, filename="S03ABA")

    assert sheet.num_teams == 4
    assert [len(t.players) for t in sheet.teams] == [2, 1, 2, 2]
    assert sheet.teams[1].players[0].name.original == "Bob Baker"


def test_four_team_marker_followed_by_five_is_not_accepted():
    """1,2,3,4,5 without a 6 matches neither marker."""
    text = "1,2,3,4,5,,\nA,B,C,D,E\n"
    with pytest.raises(ParseError, match="marker row"):
        parse_sheet(text, SheetFormat.CSV, filename="F24A")


def test_marker_detection_prefers_six_teams():
    """The 6-team check runs first."""
    rows = CsvSheetGrammar.split_rows("x\n 1, 2,3,4,5,6\n")
    assert CsvSheetGrammar.find_marker_row(rows) == (1, 6)


def test_missing_marker_row():
    """Sheets without a marker row are rejected with the file name."""
    with pytest.raises(ParseError, match="F24A"):
        parse_sheet("a,b,c\n1,2,3\n", SheetFormat.CSV, filename="F24A")


def test_empty_captain_cell(six_team_csv):
    """Any empty captain cell fails the whole sheet."""
    with pytest.raises(ParseError, match="Missing captain name"):
        parse_sheet(six_team_csv(captain_row="Last11,Last21,,Last41,Last51,Last61"), SheetFormat.CSV, filename="F24BB")


def test_missing_captain_row():
    """A marker row on the last line has no captain row."""
    with pytest.raises(ParseError, match="Captain row missing"):
        parse_sheet("1,2,3,4\n", SheetFormat.CSV, filename="F24A")


def test_short_sheet_tolerated(six_team_csv):
    """Fewer player rows than expected leaves the remaining slots absent."""
    sheet = parse_sheet(six_team_csv(player_rows=5), SheetFormat.CSV, filename="F24BB")
    assert all(len(team.players) == 5 for team in sheet.teams)


def test_rows_after_player_block_ignored(six_team_csv):
    """Only players_per_team rows are read after the captain row."""
    text = six_team_csv() + "Extra Person,,,,,\n"
    sheet = parse_sheet(text, SheetFormat.CSV, filename="F24BB")
    assert len(sheet.teams[0].players) == 8

    sheet = parse_sheet(text, SheetFormat.CSV, filename="F24BB", players_per_team=9)
    assert sheet.teams[0].players[-1].name.original == "Extra Person"


def test_csv_requires_filename(six_team_csv):
    """Season and division cannot be derived without a filename."""
    with pytest.raises(ParseError):
        parse_sheet(six_team_csv(), SheetFormat.CSV)


def test_free_form_sheet():
    """Free-form pastes read the header, captains and tab-separated rows."""
    text = "\n".join([
        "Spring 2024 A B",
        "Jones\t\tSmith\t",
        "Bob Jones\tJane Smith",
        "",
        "Lee, Kim\tGarcia, Maria\tSomeone Else",
    ])
    sheet = parse_sheet(text, SheetFormat.FREE_FORM, filename="paste.txt")

    assert sheet.season is Season.SPRING
    assert sheet.year == 2024
    assert sheet.division_name == "A B"
    assert [t.captain_last_name for t in sheet.teams] == ["Jones", "Smith"]
    assert [p.name.original for p in sheet.teams[0].players] == ["Bob Jones", "Lee, Kim"]
    assert [p.name.original for p in sheet.teams[1].players] == ["Jane Smith", "Garcia, Maria"]
    assert sheet.source_name == "paste.txt"


@pytest.mark.parametrize("text, message", [
    ("Spring 2024 A\nJones", "at least 3 lines"),
    ("Spring 2024\nJones\nBob Jones", "Invalid header"),
    ("Spring twenty A\nJones\nBob Jones", "Invalid year"),
    ("Spring 202² A\nJones\nBob Jones", "Invalid year"),
    ("Winter 2024 A\nJones\nBob Jones", "Unknown season"),
])
def test_free_form_errors(text, message):
    """Malformed free-form headers are parse errors."""
    with pytest.raises(ParseError, match=message):
        parse_sheet(text, SheetFormat.FREE_FORM)


def test_detect_format():
    """Text pastes are free-form; everything else is a batch CSV."""
    assert detect_format("draft.txt") is SheetFormat.FREE_FORM
    assert detect_format("F24A") is SheetFormat.CSV
    assert detect_format("F24A.csv") is SheetFormat.CSV
