# In src/dep_grouper/dependency.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Dependency:
    """A unified internal data structure to represent a dependency."""

    name: str
    version: Optional[str] = None
    package_manager: str = "unknown"
    source_file: Optional[str] = None
