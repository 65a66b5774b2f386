"""
Draft sheet parsing, resolution and batch import.
"""

from .sheet_parser import ParseError, SheetFormat, DraftSheet, parse_sheet, parse_filename
from .draft_builder import DraftResolver, compute_overall, build_draft_picks, build_team_records
from .batch_processing import BatchImporter, BatchSummary

__all__ = [
    'ParseError',
    'SheetFormat',
    'DraftSheet',
    'parse_sheet',
    'parse_filename',
    'DraftResolver',
    'compute_overall',
    'build_draft_picks',
    'build_team_records',
    'BatchImporter',
    'BatchSummary'
]
