"""
Assignment of dependencies to configured dependency groups.

The engine is built once from the group configuration and then assigns a
full dependency set to every group whose rules it satisfies. Assignment is
one-shot: a second call is a configuration error.
"""

import threading
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .dependency import Dependency
from .dependency_group import DependencyGroup, GroupRules
from .error_handling import ConfigurationError, log_configuration_error
from .structured_logging import (
    get_engine_logger,
    log_assignment_complete,
    log_engine_created,
)

ALREADY_ASSIGNED_MESSAGE = "dependency groups have already been configured!"

EMPTY_GROUPS_HEADER = (
    "Please check your configuration as there are groups no dependencies match:\n"
)
EMPTY_GROUPS_FOOTER = (
    "\n"
    "This can happen if:\n"
    "- the group's 'pattern' rules are mispelled\n"
    "- your configuration's 'allow' rules do not permit any of the dependencies "
    "that match the group\n"
    "- the dependencies that match the group rules have been removed from your project\n"
)


class AssignmentState(Enum):
    """Lifecycle of an engine's assignment pass."""

    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


def empty_groups_warning(group_names: Sequence[str]) -> str:
    """Build the warning listing groups that matched no dependencies."""
    bullets = "".join(f"- {name}\n" for name in group_names)
    return EMPTY_GROUPS_HEADER + bullets + EMPTY_GROUPS_FOOTER


class DependencyGroupEngine:
    """Partitions dependencies into configured groups."""

    def __init__(self, dependency_groups: List[DependencyGroup], logger=None):
        """
        Initialize the engine.

        Args:
            dependency_groups: Groups in declaration order
            logger: Receiver for configuration warnings, anything with a
                ``warning(message)`` method
        """
        self.logger = logger or get_engine_logger()
        self._groups = list(dependency_groups)
        self._groups_by_name = {group.name: group for group in self._groups}
        self._ungrouped: List[Dependency] = []
        self._state = AssignmentState.UNASSIGNED
        self._lock = threading.Lock()

    @classmethod
    def from_configuration(
        cls, group_configs: Iterable[Mapping[str, Any]], logger=None
    ) -> "DependencyGroupEngine":
        """
        Build an engine from ``{"name": ..., "rules": {...}}`` descriptors.

        Raises:
            ConfigurationError: If a descriptor is malformed or a name repeats
        """
        groups: List[DependencyGroup] = []
        seen = set()

        for index, config in enumerate(group_configs):
            name = config.get("name") if isinstance(config, Mapping) else None
            if not name:
                raise log_configuration_error(
                    ConfigurationError(f"dependency group #{index + 1} has no name"),
                    __name__,
                    "from_configuration",
                )
            if not isinstance(name, str):
                raise log_configuration_error(
                    ConfigurationError(
                        f"dependency group #{index + 1} name must be a string, "
                        f"got {type(name).__name__} {name!r}"
                    ),
                    __name__,
                    "from_configuration",
                )
            if name in seen:
                raise log_configuration_error(
                    ConfigurationError(f"dependency group '{name}' is defined more than once"),
                    __name__,
                    "from_configuration",
                    group_name=name,
                )

            try:
                rules = GroupRules.from_config(config.get("rules") or {})
            except ConfigurationError as e:
                raise log_configuration_error(
                    ConfigurationError(f"dependency group '{name}': {e}"),
                    __name__,
                    "from_configuration",
                    group_name=name,
                ) from e

            seen.add(name)
            groups.append(DependencyGroup(name=name, rules=rules))

        log_engine_created([group.name for group in groups])
        return cls(groups, logger=logger)

    @classmethod
    def from_job_config(cls, job, logger=None) -> "DependencyGroupEngine":
        """Build an engine from a job object exposing ``dependency_groups``."""
        return cls.from_configuration(job.dependency_groups or [], logger=logger)

    @property
    def dependency_groups(self) -> List[DependencyGroup]:
        return self._groups

    @property
    def ungrouped_dependencies(self) -> List[Dependency]:
        return self._ungrouped

    @property
    def state(self) -> AssignmentState:
        return self._state

    @property
    def assigned(self) -> bool:
        return self._state is AssignmentState.ASSIGNED

    def group_names(self) -> List[str]:
        return [group.name for group in self._groups]

    def find_group(self, name: str) -> Optional[DependencyGroup]:
        """Look up a group by exact name, returning None when absent."""
        return self._groups_by_name.get(name)

    def assign_to_groups(self, dependencies: Iterable[Dependency]) -> None:
        """
        Assign every dependency to each group whose rules it satisfies.

        Dependencies matching no group are kept in ``ungrouped_dependencies``.
        Groups left empty are reported through a single warning.

        Raises:
            ConfigurationError: If dependencies were already assigned
        """
        with self._lock:
            if self._state is AssignmentState.ASSIGNED:
                raise log_configuration_error(
                    ConfigurationError(ALREADY_ASSIGNED_MESSAGE),
                    __name__,
                    "assign_to_groups",
                )

            dependencies = list(dependencies)
            if self._groups:
                self._assign(dependencies)
            else:
                self._ungrouped.extend(dependencies)

            self._state = AssignmentState.ASSIGNED

        empty_groups = [group.name for group in self._groups if not group.dependencies]
        log_assignment_complete(
            {group.name: len(group.dependencies) for group in self._groups},
            len(self._ungrouped),
            empty_groups,
        )
        if empty_groups:
            self.logger.warning(empty_groups_warning(empty_groups))

    def _assign(self, dependencies: List[Dependency]) -> None:
        # Nothing is committed until every dependency has been matched.
        members: List[List[Dependency]] = [[] for _ in self._groups]
        ungrouped: List[Dependency] = []

        for dependency in dependencies:
            matched = False
            for index, group in enumerate(self._groups):
                if group.contains(dependency):
                    members[index].append(dependency)
                    matched = True

            if not matched:
                ungrouped.append(dependency)

        for group, group_members in zip(self._groups, members):
            for dependency in group_members:
                group.add(dependency)
        self._ungrouped.extend(ungrouped)

    def summary(self) -> Dict[str, Any]:
        """Counts per group and of ungrouped dependencies."""
        return {
            "assigned": self.assigned,
            "groups": {group.name: len(group.dependencies) for group in self._groups},
            "ungrouped": len(self._ungrouped),
            "empty_groups": [
                group.name for group in self._groups if not group.dependencies
            ]
            if self.assigned
            else [],
        }
