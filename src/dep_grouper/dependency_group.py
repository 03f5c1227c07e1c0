"""
Dependency groups and their name-pattern rules.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from .dependency import Dependency
from .error_handling import ConfigurationError
from .wildcard_matcher import matches_any

PATTERNS_KEY = "patterns"
EXCLUDE_PATTERNS_KEY = "exclude-patterns"


def _pattern_list(key: str, value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(pattern, str) for pattern in value
    ):
        raise ConfigurationError(f"'{key}' must be a list of strings")
    return tuple(value)


@dataclass(frozen=True)
class GroupRules:
    """Include and exclude patterns for a single group."""

    patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    # Whether the source config spelled out exclude-patterns, so to_config()
    # gives back what it was given.
    declares_excludes: bool = False

    @classmethod
    def from_config(cls, rules: Mapping[str, Any]) -> "GroupRules":
        """Build rules from a ``{"patterns": [...], "exclude-patterns": [...]}`` mapping."""
        if not isinstance(rules, Mapping):
            raise ConfigurationError("group rules must be a mapping")

        patterns = rules.get(PATTERNS_KEY) or []
        exclude_patterns = rules.get(EXCLUDE_PATTERNS_KEY)

        return cls(
            patterns=_pattern_list(PATTERNS_KEY, patterns),
            exclude_patterns=_pattern_list(EXCLUDE_PATTERNS_KEY, exclude_patterns or ()),
            declares_excludes=exclude_patterns is not None,
        )

    def to_config(self) -> Dict[str, List[str]]:
        """Convert back to the configuration mapping."""
        config = {PATTERNS_KEY: list(self.patterns)}
        if self.declares_excludes or self.exclude_patterns:
            config[EXCLUDE_PATTERNS_KEY] = list(self.exclude_patterns)
        return config

    def includes(self, name: str) -> bool:
        return matches_any(name, self.patterns)

    def excludes(self, name: str) -> bool:
        return bool(self.exclude_patterns) and matches_any(name, self.exclude_patterns)


class DependencyGroup:
    """A named bucket of dependencies selected by pattern rules."""

    def __init__(self, name: str, rules: GroupRules):
        if not name or not str(name).strip():
            raise ConfigurationError("dependency group name must not be empty")

        self.name = name
        self.rules = rules
        self.dependencies: List[Dependency] = []

    def contains(self, dependency: Dependency) -> bool:
        """
        Check whether a dependency belongs to this group.

        Exclude patterns take precedence over include patterns.
        """
        return self.rules.includes(dependency.name) and not self.rules.excludes(
            dependency.name
        )

    def add(self, dependency: Dependency) -> None:
        self.dependencies.append(dependency)

    def to_dict(self) -> Dict[str, Any]:
        """Summarise the group for reports."""
        return {
            "name": self.name,
            "rules": self.rules.to_config(),
            "dependencies": [dep.name for dep in self.dependencies],
        }

    def __repr__(self) -> str:
        return f"DependencyGroup(name={self.name!r}, dependencies={len(self.dependencies)})"
