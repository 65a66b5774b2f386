"""
Resolution of draft sheets against the roster and snake-draft pick numbering.
"""

import logging
import pandas as pd
from typing import List, NamedTuple, Optional, Sequence

from ..database.crud_operations import SheetReferences
from ..matching.manual_review import Resolver
from ..matching.matching_engine import NameMatcher
from ..matching.name_processing import Candidate, normalize_name
from .sheet_parser import DraftSheet, ResolvedPlayer, TeamDraft

logger = logging.getLogger(__name__)

# Each division level owns a band of this many overall pick numbers
PICKS_PER_LEVEL = 50


class TeamRecord(NamedTuple):
    season_id: int
    captain_id: str
    division_id: int
    name: str
    team_number: int


class DraftPick(NamedTuple):
    team_number: int
    user_id: str
    round: int
    overall: int
    team_id: Optional[int] = None


def compute_overall(
    division_level: int,
    round: int,
    team_number: int,
    num_teams: int,
    picks_per_level: int = PICKS_PER_LEVEL
) -> int:
    """
    Compute the overall pick number of a snake-draft pick.

    Odd rounds pick in team order 1..N, even rounds in reverse N..1. Each
    division level starts at (level - 1) * picks_per_level. The band width
    is not enforced here; see check_pick_band.

    Args:
        division_level: 1-based division level
        round: 1-based draft round
        team_number: 1-based draft position of the team
        num_teams: Teams in the division
        picks_per_level: Width of each level's numbering band

    Returns:
        Overall pick number

    Raises:
        ValueError: On out-of-range arguments
    """
    if division_level < 1:
        raise ValueError(f"Division level must be >= 1, got {division_level}")
    if round < 1:
        raise ValueError(f"Round must be >= 1, got {round}")
    if num_teams < 1:
        raise ValueError(f"Number of teams must be >= 1, got {num_teams}")
    if not 1 <= team_number <= num_teams:
        raise ValueError(f"Team number {team_number} outside 1..{num_teams}")

    is_odd_round = round % 2 == 1
    base = (division_level - 1) * picks_per_level + (round - 1) * num_teams
    position = team_number if is_odd_round else num_teams + 1 - team_number
    return base + position


def check_pick_band(num_rounds: int, num_teams: int, picks_per_level: int = PICKS_PER_LEVEL):
    """
    Make sure a division's picks fit in its level's numbering band.

    Raises:
        ValueError: If the picks would spill into the next level's numbers
    """
    if num_rounds * num_teams > picks_per_level:
        raise ValueError(
            f"{num_rounds} rounds with {num_teams} teams need {num_rounds * num_teams} pick numbers, "
            f"but only {picks_per_level} are reserved per division level"
        )


class DraftResolver:
    """
    Resolves every captain and player of a sheet to a roster user.

    Single matches are accepted automatically; everything else goes to the
    injected Resolver.
    """

    def __init__(self, matcher: NameMatcher, resolver: Resolver):
        self.matcher = matcher
        self.resolver = resolver

    def _pick(self, description: str, candidates: List[Candidate]) -> Candidate:
        user_id = self.resolver.choose_user(description, candidates, self.matcher)
        return self.matcher.get_user(user_id)

    def _resolve_captain_by_name(self, team: TeamDraft, player: ResolvedPlayer, chosen: bool = False):
        name = player.name
        result = self.matcher.match(name.first_name, name.last_name)

        if len(result.candidates) == 1:
            team.set_captain(result.candidates[0])
            suffix = f" (mapped from {name.original})" if result.corrected else ""
            print(f"Captain: {team.captain.first_name} {team.captain.last_name}{suffix} ✓")
            return

        mapped = f" (mapped to \"{result.corrected_name}\")" if result.corrected else ""
        if chosen:
            detail = ":"
        else:
            detail = f" - {'multiple' if result.candidates else 'no'} matches:"
        team.set_captain(self._pick(f"Captain \"{name.original}\"{mapped}{detail}", result.candidates))

    def resolve_captain(self, team_number: int, team: TeamDraft):
        print(f"\n--- Team {team_number} (Captain: {team.captain_last_name}) ---")

        captain_last = normalize_name(team.captain_last_name)
        same_last_name = [p for p in team.players if normalize_name(p.name.last_name) == captain_last]

        if len(same_last_name) == 1:
            self._resolve_captain_by_name(team, same_last_name[0])
        elif len(same_last_name) > 1:
            idx = self.resolver.choose_captain(team.captain_last_name, [p.name for p in same_last_name])
            self._resolve_captain_by_name(team, same_last_name[idx], chosen=True)
        else:
            suggestions = self.matcher.suggestions("", team.captain_last_name)
            team.set_captain(self._pick(
                f"Could not find captain with last name \"{team.captain_last_name}\" in player list:",
                suggestions
            ))

    def resolve_player(self, team: TeamDraft, player: ResolvedPlayer):
        name = player.name
        result = self.matcher.match(name.first_name, name.last_name)
        mapped = f" (mapped to \"{result.corrected_name}\")" if result.corrected else ""

        if len(result.candidates) == 1:
            player.resolve(result.candidates[0])
            suffix = f" (mapped from {name.original})" if result.corrected else ""
            print(f"  {name.original} -> {player.user.first_name} {player.user.last_name}{suffix} ✓")
            return

        if result.candidates:
            captain_match = next((c for c in result.candidates if team.captain and c.id == team.captain.id), None)
            if captain_match and normalize_name(name.last_name) == normalize_name(team.captain_last_name):
                player.resolve(captain_match)
                print(f"  {name.original} -> {captain_match.first_name} {captain_match.last_name} (captain) ✓")
                return
            player.resolve(self._pick(f"Player \"{name.original}\"{mapped} - multiple matches:", result.candidates))
            return

        suggestions = self.matcher.suggestions(name.first_name, name.last_name)
        player.resolve(self._pick(f"Player \"{name.original}\"{mapped} - no matches found:", suggestions))

    def resolve(self, sheet: DraftSheet) -> DraftSheet:
        """
        Resolve captains first, then every player, in sheet order.

        Args:
            sheet: Parsed sheet with unresolved players

        Returns:
            The same sheet, fully resolved

        Raises:
            ResolutionAborted: If the operator abandons a prompt
        """
        print(f"\nResolving users for {sheet.label}...")
        print(f"Found {sheet.num_teams} teams\n")

        for team_number, team in enumerate(sheet.teams, 1):
            self.resolve_captain(team_number, team)

        for team in sheet.teams:
            print(f"\n--- Resolving players for {team.team_name} ---")
            for player in team.players:
                self.resolve_player(team, player)

        logger.info("Resolved %s: %d teams", sheet.source_name, sheet.num_teams)
        return sheet


def _require_resolved(sheet: DraftSheet):
    if not sheet.is_resolved():
        raise ValueError(f"Sheet {sheet.source_name} still has unresolved captains or players")


def build_team_records(sheet: DraftSheet, season_id: int, division_id: int) -> List[TeamRecord]:
    """Team rows to create, one per sheet column, numbered by draft position."""
    _require_resolved(sheet)
    return [
        TeamRecord(season_id, team.captain.id, division_id, team.team_name, team_number)
        for team_number, team in enumerate(sheet.teams, 1)
    ]


def build_draft_picks(
    sheet: DraftSheet,
    division_level: int,
    team_ids: Optional[Sequence[int]] = None,
    picks_per_level: int = PICKS_PER_LEVEL
) -> List[DraftPick]:
    """
    Draft pick rows for a resolved sheet.

    Args:
        sheet: Fully resolved sheet
        division_level: Level of the sheet's division
        team_ids: Database ids of the created teams, in team order (optional)
        picks_per_level: Width of each level's numbering band

    Returns:
        Picks in team order, then round order
    """
    _require_resolved(sheet)

    check_pick_band(sheet.num_rounds, sheet.num_teams, picks_per_level)

    picks = []
    for team_number, team in enumerate(sheet.teams, 1):
        team_id = team_ids[team_number - 1] if team_ids else None
        for round_number, player in enumerate(team.players, 1):
            overall = compute_overall(division_level, round_number, team_number, sheet.num_teams, picks_per_level)
            picks.append(DraftPick(team_number, player.user.id, round_number, overall, team_id))
    return picks


def picks_to_dataframe(sheet: DraftSheet, picks: List[DraftPick]) -> pd.DataFrame:
    """
    Tabulate draft picks for reporting, ordered by overall pick.

    Returns:
        DataFrame with overall, round, team, user and sheet name columns
    """
    rows = []
    for pick in picks:
        team = sheet.teams[pick.team_number - 1]
        player = team.players[pick.round - 1]
        rows.append({
            'overall': pick.overall,
            'round': pick.round,
            'team_number': pick.team_number,
            'team_name': team.team_name,
            'team_id': pick.team_id,
            'user_id': pick.user_id,
            'player_name': f"{player.user.first_name} {player.user.last_name}",
            'sheet_name': player.name.original,
        })

    columns = ['overall', 'round', 'team_number', 'team_name', 'team_id', 'user_id', 'player_name', 'sheet_name']
    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values('overall').reset_index(drop=True)


def format_summary(sheet: DraftSheet, references: SheetReferences, picks: List[DraftPick]) -> str:
    """Render the import summary shown before the operator confirms."""
    by_team = {}
    for pick in picks:
        by_team.setdefault(pick.team_number, []).append(pick)

    lines = [
        "=" * 60,
        f"IMPORT SUMMARY: {sheet.source_name}",
        "=" * 60,
        f"Season: {sheet.season.value} {sheet.year}",
        f"Division: {sheet.division_name} (Level {references.division_level})",
        f"Season ID: {references.season_id}, Division ID: {references.division_id}",
        "",
        "TEAMS TO CREATE:",
        "-" * 60,
    ]

    for team_number, team in enumerate(sheet.teams, 1):
        lines.append("")
        lines.append(f"  Team {team_number}: {team.team_name}")
        lines.append(f"  Captain: {team.captain.first_name} {team.captain.last_name}")
        lines.append(f"  Players ({len(team.players)}):")
        for pick in by_team.get(team_number, []):
            user = team.players[pick.round - 1].user
            lines.append(f"    R{pick.round} (#{pick.overall}): {user.first_name} {user.last_name}")

    lines.extend([
        "",
        "-" * 60,
        f"Total: {sheet.num_teams} teams, {len(picks)} draft picks",
        "=" * 60,
    ])
    return "\n".join(lines)
