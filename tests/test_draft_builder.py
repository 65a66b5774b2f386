import pytest

from draft_import.database.crud_operations import SheetReferences
from draft_import.integration.draft_builder import (
    DraftPick,
    DraftResolver,
    build_draft_picks,
    build_team_records,
    check_pick_band,
    compute_overall,
    format_summary,
    picks_to_dataframe,
)
from draft_import.integration.sheet_parser import SheetFormat, parse_sheet
from draft_import.matching.manual_review import ResolutionAborted, ScriptedResolver
from draft_import.matching.matching_engine import NameMatcher
from draft_import.matching.name_processing import Candidate, NameCorrections

FREE_FORM_SHEET = "\n".join([
    "Fall 2024 A",
    "Smith\tLee\tGarcia",
    "John Smith\tKim Lee\tRob Jonse",
    "Jane Smith\tMario Garcia\tJohn Public",
])

# Team 1 captain, team 2 captain, team 3 captain, then Mario Garcia
ANSWERS = ["2", "2", "1", "1"]


@pytest.fixture
def matcher(roster):
    roster = roster + [Candidate("u-lee-kimberly", "Kimberly", "Lee", None)]
    return NameMatcher(roster, NameCorrections({"jonse, rob": ("Robert", "Jones")}))


def _resolve(matcher, answers=ANSWERS):
    sheet = parse_sheet(FREE_FORM_SHEET, SheetFormat.FREE_FORM)
    resolver = ScriptedResolver(answers)
    DraftResolver(matcher, resolver).resolve(sheet)
    return sheet, resolver


def _base(level, round, num_teams):
    return (level - 1) * 50 + (round - 1) * num_teams


def test_overall_is_injective_and_contiguous():
    """Each round's picks fill a contiguous block of num_teams numbers."""
    for num_teams in range(2, 9):
        for round in range(1, 21):
            overalls = {compute_overall(2, round, t, num_teams) for t in range(1, num_teams + 1)}
            base = _base(2, round, num_teams)
            assert overalls == set(range(base + 1, base + num_teams + 1))


def test_overall_snake_mirror():
    """Round 2 reverses the round 1 order."""
    for num_teams in range(1, 9):
        for team in range(1, num_teams + 1):
            first = compute_overall(4, 1, team, num_teams) - _base(4, 1, num_teams)
            second = compute_overall(4, 2, team, num_teams) - _base(4, 2, num_teams)
            assert first == num_teams + 1 - second


def test_overall_strictly_increasing_in_draft_order():
    """Walking the snake visits overall numbers in increasing order."""
    num_teams = 6
    order = []
    for round in range(1, 9):
        teams = range(1, num_teams + 1) if round % 2 else range(num_teams, 0, -1)
        order.extend(compute_overall(1, round, t, num_teams) for t in teams)
    assert order == list(range(1, 49))


@pytest.mark.parametrize("args", [(0, 1, 1, 6), (1, 0, 1, 6), (1, 1, 0, 6), (1, 1, 7, 6), (1, 1, 1, 0)])
def test_overall_rejects_invalid_arguments(args):
    """Levels, rounds and team numbers are 1-based."""
    with pytest.raises(ValueError):
        compute_overall(*args)


def test_pick_band_check():
    """A division whose picks spill into the next level is rejected."""
    check_pick_band(8, 6)
    with pytest.raises(ValueError):
        check_pick_band(9, 6)
    check_pick_band(9, 6, picks_per_level=60)


def test_resolution_flow(matcher):
    """Captains and players resolve automatically where unambiguous, otherwise by prompt."""
    sheet, resolver = _resolve(matcher)

    assert sheet.is_resolved()
    assert resolver.answers == []
    assert [t.team_name for t in sheet.teams] == ["Team Smith", "Team Lee", "Team Garcia"]
    assert [t.captain.id for t in sheet.teams] == ["u-smith-jane", "u-lee-kimberly", "u-garcia-maria"]

    player_ids = [[p.user.id for p in t.players] for t in sheet.teams]
    assert player_ids == [
        ["u-smith-john", "u-smith-jane"],
        # Ambiguous "Kim Lee" goes to the team's captain without a prompt
        ["u-lee-kimberly", "u-garcia-maria"],
        # "Rob Jonse" is fixed through the correction table
        ["u-jones-robert", "u-public-john"],
    ]


def test_player_not_matching_captain_is_prompted(roster):
    """Multiple matches only default to the captain when last names agree."""
    matcher = NameMatcher(roster)
    sheet = parse_sheet("Fall 2024 A\nGarcia\nMaria Garcia\nJ Smith", SheetFormat.FREE_FORM)
    resolver = ScriptedResolver(["2"])

    DraftResolver(matcher, resolver).resolve(sheet)

    assert sheet.teams[0].captain.id == "u-garcia-maria"
    assert sheet.teams[0].players[1].user.id == "u-smith-jane"
    assert resolver.prompts == ["Enter choice (number or user ID): "]


def test_aborted_resolution_propagates(matcher):
    """Running out of operator input aborts the sheet."""
    with pytest.raises(ResolutionAborted):
        _resolve(matcher, answers=["2"])


def test_resolution_is_repeatable(matcher):
    """Identical input and answers give identical picks."""
    first, _ = _resolve(matcher)
    second, _ = _resolve(matcher)
    assert build_draft_picks(first, 2) == build_draft_picks(second, 2)


def test_snake_picks_for_resolved_sheet(matcher):
    """Picks follow team order then round order with snake numbering."""
    sheet, _ = _resolve(matcher)
    picks = build_draft_picks(sheet, 1, team_ids=[10, 11, 12])

    assert picks == [
        DraftPick(1, "u-smith-john", 1, 1, 10),
        DraftPick(1, "u-smith-jane", 2, 6, 10),
        DraftPick(2, "u-lee-kimberly", 1, 2, 11),
        DraftPick(2, "u-garcia-maria", 2, 5, 11),
        DraftPick(3, "u-jones-robert", 1, 3, 12),
        DraftPick(3, "u-public-john", 2, 4, 12),
    ]


def test_six_team_level_three_scenario(six_team_csv):
    """Level 3 with 6 teams numbers round 1 as 101-106 and round 2 as 112 down to 107."""
    roster = [Candidate(f"t{t}p{s}", f"First{t}{s}", f"Last{t}{s}") for t in range(1, 7) for s in range(1, 9)]
    sheet = parse_sheet(six_team_csv(), SheetFormat.CSV, filename="F24BB")
    DraftResolver(NameMatcher(roster), ScriptedResolver([])).resolve(sheet)

    picks = build_draft_picks(sheet, 3)
    assert len(picks) == 48

    round_one = {p.team_number: p.overall for p in picks if p.round == 1}
    round_two = {p.team_number: p.overall for p in picks if p.round == 2}
    assert round_one == {1: 101, 2: 102, 3: 103, 4: 104, 5: 105, 6: 106}
    assert round_two == {6: 107, 5: 108, 4: 109, 3: 110, 2: 111, 1: 112}
    assert sorted(p.overall for p in picks) == list(range(101, 149))


def test_unresolved_sheet_is_refused():
    """No records are built until every player has a user."""
    sheet = parse_sheet(FREE_FORM_SHEET, SheetFormat.FREE_FORM)
    with pytest.raises(ValueError):
        build_draft_picks(sheet, 1)
    with pytest.raises(ValueError):
        build_team_records(sheet, 1, 1)


def test_team_records(matcher):
    """One team record per column, numbered by draft position."""
    sheet, _ = _resolve(matcher)
    records = build_team_records(sheet, season_id=5, division_id=9)

    assert [r.team_number for r in records] == [1, 2, 3]
    assert records[1]._asdict() == {
        'season_id': 5,
        'captain_id': 'u-lee-kimberly',
        'division_id': 9,
        'name': 'Team Lee',
        'team_number': 2,
    }


def test_report_and_summary(matcher):
    """The pick report is sorted by overall and the summary lists every pick."""
    sheet, _ = _resolve(matcher)
    picks = build_draft_picks(sheet, 1)

    df = picks_to_dataframe(sheet, picks)
    assert df['overall'].tolist() == [1, 2, 3, 4, 5, 6]
    assert df.loc[0, 'player_name'] == "John Smith"
    assert df.loc[2, 'sheet_name'] == "Rob Jonse"

    summary = format_summary(sheet, SheetReferences(1, 2, 1), picks)
    assert "Division: A (Level 1)" in summary
    assert "R2 (#6): Jane Smith" in summary
    assert "Total: 3 teams, 6 draft picks" in summary
