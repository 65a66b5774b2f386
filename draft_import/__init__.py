"""
Volleyball League Draft Import

Imports historical draft sheets into the league database: parses team and
player columns, reconciles hand-typed names against the user roster with an
operator in the loop, and records teams and snake-draft picks.
"""

__version__ = "1.0.0"

# Core modules
from . import database
from . import matching
from . import integration

__all__ = [
    'database',
    'matching',
    'integration'
]
