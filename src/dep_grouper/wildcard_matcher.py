"""
Name pattern matching for dependency group rules.

A pattern is either an exact dependency name or a glob using ``*``.
"""

import fnmatch
from enum import Enum
from typing import Iterable, Optional

WILDCARD = "*"

# fnmatch treats these as syntax; group rules only know about "*"
_LITERAL_ESCAPES = {"?": "[?]", "[": "[[]", "]": "[]]"}


class MatchType(Enum):
    """Types of pattern matching."""

    EXACT = "exact"
    PATTERN = "pattern"


def match_type(pattern: str) -> MatchType:
    """Classify a rule pattern."""
    return MatchType.PATTERN if WILDCARD in pattern else MatchType.EXACT


def _to_glob(pattern: str) -> str:
    return "".join(_LITERAL_ESCAPES.get(char, char) for char in pattern)


def matches(name: Optional[str], pattern: Optional[str]) -> bool:
    """
    Check whether a dependency name satisfies a single pattern.

    Matching is case-sensitive and covers the whole name.

    Args:
        name: Dependency name
        pattern: Exact name or ``*`` glob

    Returns:
        bool: True if the name matches the pattern
    """
    if name is None or pattern is None:
        return False

    if match_type(pattern) == MatchType.EXACT:
        return name == pattern

    return fnmatch.fnmatchcase(name, _to_glob(pattern))


def matches_any(name: Optional[str], patterns: Iterable[str]) -> bool:
    """Check whether a name satisfies at least one of the patterns."""
    return any(matches(name, pattern) for pattern in patterns)
