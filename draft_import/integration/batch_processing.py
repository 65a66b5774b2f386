"""
Batch import of draft sheets, one sheet per transaction.
"""

import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional

from ..database.connection import DEFAULT_DB_PATH
from ..database.crud_operations import (
    PersistenceError,
    ReferenceDataError,
    insert_draft,
    lookup_season_and_division,
)
from ..matching.manual_review import ResolutionAborted, Resolver
from ..matching.matching_engine import NameMatcher
from .draft_builder import (
    PICKS_PER_LEVEL,
    DraftResolver,
    build_draft_picks,
    build_team_records,
    check_pick_band,
    format_summary,
    picks_to_dataframe,
)
from .sheet_parser import (
    PLAYERS_PER_TEAM,
    DraftSheet,
    ParseError,
    SheetFormat,
    detect_format,
    parse_sheet,
)

logger = logging.getLogger(__name__)

SHEET_FILENAME_PATTERN = re.compile(r'^[FSU]\d{2}')

# Per-sheet failures that are reported and let the batch move on
SHEET_ERRORS = (ParseError, ReferenceDataError, PersistenceError, ResolutionAborted, ValueError, OSError)


class ImportOutcome(Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class BatchSummary(NamedTuple):
    processed: int
    skipped: int
    failed: int
    total: int

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def list_sheet_files(directory: str) -> List[str]:
    """
    List draft sheet files in a directory, sorted by name.

    Args:
        directory: Drafts directory

    Returns:
        Filenames that start with a season letter and two-digit year
    """
    return sorted(
        name for name in os.listdir(directory)
        if SHEET_FILENAME_PATTERN.match(name)
        and name != "SystemData"
        and os.path.isfile(os.path.join(directory, name))
    )


class BatchImporter:
    """
    Parses, resolves and persists draft sheets one at a time.
    """

    def __init__(
        self,
        matcher: NameMatcher,
        resolver: Resolver,
        db_path: str = DEFAULT_DB_PATH,
        dry_run: bool = False,
        players_per_team: int = PLAYERS_PER_TEAM,
        picks_per_level: int = PICKS_PER_LEVEL,
        report_dir: Optional[str] = None
    ):
        """
        Initialize the importer.

        Args:
            matcher: Roster matcher (with any name corrections loaded)
            resolver: Source of operator decisions
            db_path: Path to the league database
            dry_run: Parse and resolve only, never write
            players_per_team: Player rows per CSV sheet
            picks_per_level: Width of each division level's overall pick band
            report_dir: Directory for per-sheet draft pick CSV reports
        """
        self.matcher = matcher
        self.resolver = resolver
        self.db_path = db_path
        self.dry_run = dry_run
        self.players_per_team = players_per_team
        self.picks_per_level = picks_per_level
        self.report_dir = report_dir
        self.draft_resolver = DraftResolver(matcher, resolver)

    def _write_report(self, sheet: DraftSheet, picks) -> Optional[Path]:
        if not self.report_dir:
            return None
        report_path = Path(self.report_dir) / f"{Path(sheet.source_name).stem}_draft_picks.csv"
        report_path.parent.mkdir(parents=True, exist_ok=True)
        picks_to_dataframe(sheet, picks).to_csv(report_path, index=False)
        print(f"Report saved to: {report_path}")
        return report_path

    def import_sheet(self, sheet: DraftSheet) -> ImportOutcome:
        """
        Resolve and persist one parsed sheet.

        Args:
            sheet: Parsed sheet

        Returns:
            PROCESSED, or SKIPPED if the operator declined the insert

        Raises:
            ReferenceDataError, ResolutionAborted, PersistenceError, ValueError
        """
        print(f"Parsed: {sheet.label}")
        print(f"Teams: {sheet.num_teams}")

        # Reject oversized divisions before the operator answers any prompts
        check_pick_band(sheet.num_rounds, sheet.num_teams, self.picks_per_level)

        references = lookup_season_and_division(
            sheet.season.value, sheet.year, sheet.division_name, db_path=self.db_path
        )
        print(f"Season ID: {references.season_id}, Division ID: {references.division_id}, "
              f"Level: {references.division_level}")

        self.draft_resolver.resolve(sheet)

        picks = build_draft_picks(sheet, references.division_level, picks_per_level=self.picks_per_level)
        print("\n" + format_summary(sheet, references, picks))

        if self.dry_run:
            print("\n[DRY RUN] Skipping database insert.")
            self._write_report(sheet, picks)
            return ImportOutcome.PROCESSED

        if not self.resolver.confirm(f"\nInsert {sheet.source_name} into the database? [Y/n]: "):
            print(f"\nSkipped {sheet.source_name}.")
            return ImportOutcome.SKIPPED

        records = build_team_records(sheet, references.season_id, references.division_id)
        print("\nInserting teams and draft picks...")
        team_ids = insert_draft(
            [record._asdict() for record in records],
            [pick._asdict() for pick in picks],
            audit_summary=f"Imported draft {sheet.label}: {len(records)} teams, {len(picks)} picks",
            db_path=self.db_path
        )
        for record, team_id in zip(records, team_ids):
            print(f"  ✓ Created {record.name} (ID: {team_id})")
        print(f"  ✓ Inserted {len(picks)} draft picks")

        try:
            self._write_report(sheet, build_draft_picks(
                sheet, references.division_level, team_ids, picks_per_level=self.picks_per_level
            ))
        except OSError as e:
            # Teams are committed at this point
            logger.warning("Could not write report for %s: %s", sheet.source_name, e)
            print(f"  ! Report not written: {e}")
        print(f"\n✓ Successfully imported {sheet.source_name}!")
        return ImportOutcome.PROCESSED

    def import_text(self, raw_text: str, sheet_format: SheetFormat, name: Optional[str] = None) -> ImportOutcome:
        """Parse sheet text and import it."""
        sheet = parse_sheet(raw_text, sheet_format, filename=name, players_per_team=self.players_per_team)
        return self.import_sheet(sheet)

    def import_file(self, path: str, sheet_format: Optional[SheetFormat] = None) -> ImportOutcome:
        """Read a sheet file and import it (format detected from the extension)."""
        with open(path, encoding="utf-8") as f:
            raw_text = f.read()
        return self.import_text(raw_text, sheet_format or detect_format(path), name=os.path.basename(path))

    def run(self, paths: List[str]) -> BatchSummary:
        """
        Import several sheet files in order.

        A failing sheet is reported and the operator decides whether the
        batch continues. Sheets already committed are unaffected.

        Args:
            paths: Sheet file paths

        Returns:
            BatchSummary with per-outcome counts
        """
        counts = {outcome: 0 for outcome in ImportOutcome}

        print(f"\nFiles to process: {len(paths)}")
        print(", ".join(os.path.basename(p) for p in paths))

        for idx, path in enumerate(paths, 1):
            filename = os.path.basename(path)
            print(f"\n{'#' * 60}")
            print(f"# FILE {idx}/{len(paths)}: {filename}")
            print(f"{'#' * 60}")

            if not os.path.exists(path):
                print(f"  ! File not found: {path}")
                counts[ImportOutcome.FAILED] += 1
                continue

            try:
                counts[self.import_file(path)] += 1
            except SHEET_ERRORS as e:
                logger.debug("Import of %s failed", filename, exc_info=True)
                print(f"\n✗ Error processing {filename}: {e}")
                counts[ImportOutcome.FAILED] += 1
                try:
                    keep_going = self.resolver.confirm("\nContinue with next file? [Y/n]: ")
                except ResolutionAborted:
                    keep_going = False
                if not keep_going:
                    break

        summary = BatchSummary(
            processed=counts[ImportOutcome.PROCESSED],
            skipped=counts[ImportOutcome.SKIPPED],
            failed=counts[ImportOutcome.FAILED],
            total=len(paths)
        )

        print(f"\n{'=' * 60}")
        print("BATCH IMPORT COMPLETE")
        print(f"  Processed: {summary.processed}")
        print(f"  Skipped:   {summary.skipped}")
        print(f"  Failed:    {summary.failed}")
        print(f"  Total:     {summary.total}")
        print("=" * 60)

        return summary
