"""
Name parsing, normalization and the name correction table.
"""

import logging
import os
import pandas as pd
from typing import Dict, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class ParsedName(NamedTuple):
    """A free-text player name split into first and last name."""
    first_name: str
    last_name: str
    original: str  # Verbatim (trimmed) source text


class Candidate(NamedTuple):
    """A roster user that a sheet name may refer to."""
    id: str
    first_name: str
    last_name: str
    preferred_name: Optional[str] = None


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_name(value) -> str:
    """
    Normalize a name fragment for comparison.

    Args:
        value: Name fragment (None and NaN are treated as empty)

    Returns:
        Trimmed, lower-cased string
    """
    if _is_missing(value):
        return ""
    return str(value).strip().lower()


def parse_name(text) -> ParsedName:
    """
    Parse a player name typed into a draft sheet.

    Handles both conventions found in the sheets:
    1. "Last, First" (split on the first comma)
    2. "First [Middle...] Last" (last whitespace token is the last name)

    A single token is taken as a first name. Never raises; malformed input
    degrades to a partial name.

    Args:
        text: Raw cell text

    Returns:
        ParsedName with first/last name and the trimmed original
    """
    if _is_missing(text):
        return ParsedName("", "", "")

    trimmed = str(text).strip()
    if not trimmed:
        return ParsedName("", "", "")

    if "," in trimmed:
        last, _, first = trimmed.partition(",")
        return ParsedName(first.strip(), last.strip(), trimmed)

    parts = trimmed.split()
    if len(parts) == 1:
        return ParsedName(parts[0], "", trimmed)

    return ParsedName(" ".join(parts[:-1]), parts[-1], trimmed)


def format_candidate(candidate: Candidate) -> str:
    """Render a candidate as 'First (Preferred) Last [id]'."""
    pref = f" ({candidate.preferred_name})" if candidate.preferred_name else ""
    return f"{candidate.first_name}{pref} {candidate.last_name} [{candidate.id}]"


class NameCorrections:
    """
    Lookup table of known misspellings in legacy draft sheets.

    Keys are "last, first" in lower case; values are the corrected
    (first_name, last_name) pair.
    """

    def __init__(self, mapping: Optional[Dict[str, Tuple[str, str]]] = None):
        self._mapping: Dict[str, Tuple[str, str]] = {}
        for wrong, good in (mapping or {}).items():
            self._mapping[normalize_name(wrong)] = good

    @staticmethod
    def make_key(first_name: str, last_name: str) -> str:
        return f"{normalize_name(last_name)}, {normalize_name(first_name)}"

    @classmethod
    def from_csv(cls, path: str) -> "NameCorrections":
        """
        Load corrections from a two-column CSV file.

        The file has a header row followed by rows of
        wrong "Last, First" and good "Last, First".

        Args:
            path: Path to the correction CSV

        Returns:
            NameCorrections (empty if the file does not exist)
        """
        if not os.path.exists(path):
            print("No name mapping file found, skipping.")
            return cls()

        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        except pd.errors.EmptyDataError:
            print(f"Name mapping file {path} is empty, skipping.")
            return cls()

        mapping = {}
        skipped = 0
        for row in df.itertuples(index=False):
            if len(row) < 2:
                skipped += 1
                continue

            wrong_name = str(row[0]).strip().strip('"')
            good_name = str(row[1]).strip().strip('"')
            if not wrong_name or not good_name:
                skipped += 1
                continue

            good_last, _, good_first = good_name.partition(",")
            mapping[wrong_name.lower()] = (good_first.strip(), good_last.strip())

        if skipped:
            logger.warning("Skipped %d incomplete rows in %s", skipped, path)

        corrections = cls(mapping)
        print(f"Loaded {len(corrections)} name mappings")
        return corrections

    def lookup(self, first_name: str, last_name: str) -> Optional[Tuple[str, str]]:
        """
        Find the corrected name for a sheet name.

        Returns:
            (first_name, last_name) or None if there is no correction
        """
        return self._mapping.get(self.make_key(first_name, last_name))

    def __len__(self) -> int:
        return len(self._mapping)
