"""Invoice-name to ingredient matching."""

from .matcher import (
    HIGH,
    LOW,
    MEDIUM,
    NONE,
    MatchResult,
    MatchThresholds,
    NameMatcher,
    ScoredCandidate,
)
from .tables import MatchingTables, default_tables

__all__ = [
    "HIGH",
    "LOW",
    "MEDIUM",
    "NONE",
    "MatchResult",
    "MatchThresholds",
    "MatchingTables",
    "NameMatcher",
    "ScoredCandidate",
    "default_tables",
]
