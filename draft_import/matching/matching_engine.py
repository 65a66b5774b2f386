"""
Matching of draft sheet names against the league roster.
"""

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

from fuzzywuzzy import fuzz

from .name_processing import Candidate, NameCorrections, normalize_name

logger = logging.getLogger(__name__)


class MatchResult(NamedTuple):
    """Result of looking up one sheet name."""
    candidates: List[Candidate]
    corrected: bool = False  # True when the correction table supplied the name
    corrected_name: Optional[str] = None


def _first_name_matches(query_first: str, candidate: Candidate) -> bool:
    first = normalize_name(candidate.first_name)
    preferred = normalize_name(candidate.preferred_name)

    return (
        first == query_first
        or first.startswith(query_first)
        or query_first.startswith(first)
        or (bool(preferred) and preferred.startswith(query_first))
    )


def find_candidates(first_name: str, last_name: str, roster: Iterable[Candidate]) -> List[Candidate]:
    """
    Find roster users whose name matches a sheet name.

    The last name must match exactly (case-insensitive, trimmed). The first
    name matches when either name is a prefix of the other, or when the
    sheet name is a prefix of the user's preferred name.

    Args:
        first_name: Parsed first name
        last_name: Parsed last name
        roster: Users to search

    Returns:
        All matching users in roster order (may be empty or ambiguous)
    """
    norm_first = normalize_name(first_name)
    norm_last = normalize_name(last_name)

    if not norm_last:
        return []

    return [
        user for user in roster
        if normalize_name(user.last_name) == norm_last and _first_name_matches(norm_first, user)
    ]


def find_candidates_by_last_name_only(last_name: str, roster: Iterable[Candidate]) -> List[Candidate]:
    """
    Find roster users sharing a last name, for near-miss suggestions.

    Args:
        last_name: Last name to look for
        roster: Users to search

    Returns:
        Users with exactly that (normalized) last name
    """
    norm_last = normalize_name(last_name)
    if not norm_last:
        return []
    return [user for user in roster if normalize_name(user.last_name) == norm_last]


def rank_suggestions(first_name: str, candidates: List[Candidate]) -> List[Candidate]:
    """
    Order near-miss suggestions by first/preferred name similarity.

    Args:
        first_name: First name typed in the sheet
        candidates: Suggestions to order

    Returns:
        Candidates sorted best first (ties keep roster order)
    """
    norm_first = normalize_name(first_name)
    if not norm_first:
        return list(candidates)

    def score(candidate: Candidate) -> int:
        return max(
            fuzz.ratio(norm_first, normalize_name(candidate.first_name)),
            fuzz.ratio(norm_first, normalize_name(candidate.preferred_name)),
        )

    return sorted(candidates, key=score, reverse=True)


class NameMatcher:
    """
    Matches sheet names against a roster, falling back to known corrections.
    """

    def __init__(self, roster: Iterable[Candidate], corrections: Optional[NameCorrections] = None):
        """
        Initialize the matcher.

        Args:
            roster: All known users
            corrections: Optional table of known misspellings
        """
        self.roster: List[Candidate] = list(roster)
        self.corrections = corrections or NameCorrections()
        self._by_id: Dict[str, Candidate] = {user.id: user for user in self.roster}

    def match(self, first_name: str, last_name: str) -> MatchResult:
        """
        Look up a name, retrying with the correction table when nothing matches.

        Args:
            first_name: Parsed first name
            last_name: Parsed last name

        Returns:
            MatchResult with the candidate list
        """
        direct = find_candidates(first_name, last_name, self.roster)
        if direct:
            return MatchResult(direct)

        mapped = self.corrections.lookup(first_name, last_name)
        if mapped:
            mapped_first, mapped_last = mapped
            logger.debug("Retrying %s %s as corrected name %s %s",
                         first_name, last_name, mapped_first, mapped_last)
            return MatchResult(
                find_candidates(mapped_first, mapped_last, self.roster),
                corrected=True,
                corrected_name=f"{mapped_first} {mapped_last}",
            )

        return MatchResult([])

    def suggestions(self, first_name: str, last_name: str) -> List[Candidate]:
        """Same-last-name users, best first-name match first."""
        return rank_suggestions(first_name, find_candidates_by_last_name_only(last_name, self.roster))

    def get_user(self, user_id: str) -> Optional[Candidate]:
        return self._by_id.get(user_id)

    def __contains__(self, user_id) -> bool:
        return user_id in self._by_id

    def __len__(self) -> int:
        return len(self.roster)
