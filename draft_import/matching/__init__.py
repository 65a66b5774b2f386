"""
Name parsing, roster matching and manual review.
"""

from .name_processing import (
    ParsedName,
    Candidate,
    NameCorrections,
    parse_name,
    normalize_name
)
from .matching_engine import (
    NameMatcher,
    MatchResult,
    find_candidates,
    find_candidates_by_last_name_only
)
from .manual_review import Resolver, ConsoleResolver, ScriptedResolver, ResolutionAborted

__all__ = [
    'ParsedName',
    'Candidate',
    'NameCorrections',
    'parse_name',
    'normalize_name',
    'NameMatcher',
    'MatchResult',
    'find_candidates',
    'find_candidates_by_last_name_only',
    'Resolver',
    'ConsoleResolver',
    'ScriptedResolver',
    'ResolutionAborted'
]
