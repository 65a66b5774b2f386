"""
Main entry point for the draft import system.
"""

import argparse
import logging
import os
import sqlite3
import sys
from typing import List, Optional

from draft_import.database.connection import DEFAULT_DB_PATH
from draft_import.database.crud_operations import clean_preferred_names, get_all_users
from draft_import.database.initializer import initialize_database, seed_reference_data
from draft_import.integration.batch_processing import (
    SHEET_ERRORS,
    BatchImporter,
    ImportOutcome,
    list_sheet_files,
)
from draft_import.integration.draft_builder import PICKS_PER_LEVEL
from draft_import.integration.sheet_parser import PLAYERS_PER_TEAM, SheetFormat
from draft_import.matching.manual_review import MAX_PROMPT_ATTEMPTS, ConsoleResolver
from draft_import.matching.matching_engine import NameMatcher
from draft_import.matching.name_processing import NameCorrections

DEFAULT_DRAFTS_DIR = os.path.join(os.path.expanduser("~"), "bsd-drafts")
DEFAULT_MAPPING_FILE = os.path.join(os.path.expanduser("~"), "draft-mapping-fix.csv")


def tty_input(prompt: str) -> str:
    """Read operator answers from the terminal even when stdin carries the sheet."""
    try:
        with open("/dev/tty") as tty:
            print(prompt, end="", flush=True)
            line = tty.readline()
    except OSError:
        return input(prompt)
    if not line:
        raise EOFError
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Volleyball League Draft Import')

    parser.add_argument('--database-path', '-d', type=str, default=DEFAULT_DB_PATH,
                        help='SQLite database path')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show debug logging')
    parser.add_argument('--picks-per-level', type=int, default=PICKS_PER_LEVEL,
                        help='Overall pick numbers reserved per division level')
    parser.add_argument('--max-attempts', type=int, default=MAX_PROMPT_ATTEMPTS,
                        help='Invalid answers tolerated per prompt')

    subparsers = parser.add_subparsers(dest='command', required=True)

    batch = subparsers.add_parser('batch', help='Import CSV draft sheets from the drafts directory')
    batch.add_argument('files', nargs='*',
                       help='Sheet filenames to import (default: every sheet in the directory)')
    batch.add_argument('--drafts-dir', type=str, default=DEFAULT_DRAFTS_DIR,
                       help='Directory holding the draft sheets')
    batch.add_argument('--mapping-file', type=str, default=DEFAULT_MAPPING_FILE,
                       help='CSV of known misspelled names and their corrections')
    batch.add_argument('--players-per-team', type=int, default=PLAYERS_PER_TEAM,
                       help='Player rows following the captain row')
    batch.add_argument('--dry-run', action='store_true',
                       help='Parse and resolve only, no database writes')
    batch.add_argument('--report-dir', type=str,
                       help='Write a draft pick CSV per sheet to this directory')

    single = subparsers.add_parser('import', help='Import one free-form (tab-separated) draft paste')
    source = single.add_mutually_exclusive_group()
    source.add_argument('--file', type=str, help='Read the draft data from a file')
    source.add_argument('--interactive', action='store_true',
                        help='Paste the draft data into the terminal (end with Ctrl+D)')
    single.add_argument('--mapping-file', type=str, default=DEFAULT_MAPPING_FILE,
                        help='CSV of known misspelled names and their corrections')
    single.add_argument('--dry-run', action='store_true',
                        help='Parse and resolve only, no database writes')
    single.add_argument('--report-dir', type=str,
                        help='Write a draft pick CSV to this directory')

    subparsers.add_parser('init-db', help='Create the database schema')

    seed = subparsers.add_parser('seed', help='Load reference data from CSV exports')
    seed.add_argument('--users', type=str, help='Users CSV export')
    seed.add_argument('--seasons', type=str, help='Seasons CSV export')
    seed.add_argument('--divisions', type=str, help='Divisions CSV export')

    clean = subparsers.add_parser('clean-preferred-names',
                                  help='Clear preferred names identical to the first name')
    clean.add_argument('--dry-run', action='store_true', help='Only report what would change')

    return parser


def _build_importer(args, dry_run: bool, players_per_team: int = PLAYERS_PER_TEAM) -> BatchImporter:
    corrections = NameCorrections.from_csv(args.mapping_file)

    print("Loading users from database...")
    roster = get_all_users(args.database_path)
    print(f"Loaded {len(roster)} users")

    return BatchImporter(
        matcher=NameMatcher(roster, corrections),
        resolver=ConsoleResolver(input_func=tty_input, max_attempts=args.max_attempts),
        db_path=args.database_path,
        dry_run=dry_run,
        players_per_team=players_per_team,
        picks_per_level=args.picks_per_level,
        report_dir=args.report_dir
    )


def run_batch(args) -> int:
    importer = _build_importer(args, args.dry_run, args.players_per_team)

    filenames = args.files or list_sheet_files(args.drafts_dir)
    paths = [name if os.path.isabs(name) else os.path.join(args.drafts_dir, name) for name in filenames]

    return importer.run(paths).exit_code


def run_single_import(args) -> int:
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            raw_text = f.read()
        name = os.path.basename(args.file)
    elif args.interactive:
        print("\nPaste your draft data below (press Ctrl+D when done):\n")
        raw_text = sys.stdin.read()
        name = "pasted input"
    else:
        raw_text = sys.stdin.read()
        name = "stdin"

    importer = _build_importer(args, args.dry_run)
    try:
        outcome = importer.import_text(raw_text, SheetFormat.FREE_FORM, name=name)
    except SHEET_ERRORS as e:
        print(f"\nError: {e}")
        return 1

    if outcome is ImportOutcome.SKIPPED:
        print("\nAborted. No changes were made.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for command-line usage."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print(f"Using database: {args.database_path}")

    if args.command == 'init-db':
        success = initialize_database(args.database_path)
        print(f"Schema creation: {'Success' if success else 'Failed'}")
        return 0 if success else 1

    if args.command == 'seed':
        seed_reference_data(args.users, args.seasons, args.divisions, db_path=args.database_path)
        return 0

    if not initialize_database(args.database_path):
        print("Could not initialize the database schema")
        return 1

    if args.command == 'clean-preferred-names':
        clean_preferred_names(dry_run=args.dry_run, db_path=args.database_path)
        print("Done.")
        return 0

    try:
        if args.command == 'batch':
            return run_batch(args)
        return run_single_import(args)
    except (OSError, sqlite3.Error) as e:
        print(f"\nFatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
