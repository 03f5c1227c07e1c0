"""
Reporting and output formatting for grouping results.

Provides color-coded console output using Rich library and a JSON export.
"""

import json
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .dependency import Dependency
from .dependency_group_engine import DependencyGroupEngine


def _dependency_label(dependency: Dependency) -> str:
    if dependency.version:
        return f"{dependency.name} ({dependency.version})"
    return dependency.name


def grouping_results_to_dict(engine: DependencyGroupEngine) -> Dict[str, Any]:
    """Collect grouping results into a JSON-serialisable mapping."""
    return {
        "groups": [
            {
                "name": group.name,
                "rules": group.rules.to_config(),
                "dependencies": [
                    {"name": dep.name, "version": dep.version}
                    for dep in group.dependencies
                ],
            }
            for group in engine.dependency_groups
        ],
        "ungrouped_dependencies": [
            {"name": dep.name, "version": dep.version}
            for dep in engine.ungrouped_dependencies
        ],
        "summary": engine.summary(),
    }


def grouping_results_to_json(engine: DependencyGroupEngine) -> str:
    return json.dumps(grouping_results_to_dict(engine), indent=2, ensure_ascii=False)


class GroupingReporter:
    """Formats and displays grouping results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_grouping_results(
        self, engine: DependencyGroupEngine, groups_file: str
    ) -> None:
        """
        Print grouping results in a user-friendly format.

        Args:
            engine: Engine after its assignment pass
            groups_file: Path of the group definitions
        """
        self.console.print()
        self.console.print(
            Panel(
                f"📦 Dependency Groups: {escape(str(groups_file))}",
                title="[bold blue]Dep-Grouper[/bold blue]",
                border_style="blue",
            )
        )

        if engine.dependency_groups:
            self._print_groups_table(engine)
        else:
            self.console.print("No dependency groups configured.", style="dim")

        self._print_ungrouped(engine.ungrouped_dependencies)

        empty_groups = engine.summary()["empty_groups"]
        if empty_groups:
            names = ", ".join(empty_groups)
            self.console.print(
                f"⚠️  Groups with no matching dependencies: {escape(names)}",
                style="yellow",
            )

    def _print_groups_table(self, engine: DependencyGroupEngine) -> None:
        table = Table(title="📊 Groups", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Group", style="bold")
        table.add_column("Patterns")
        table.add_column("Excludes")
        table.add_column("Dependencies")

        for group in engine.dependency_groups:
            members = ", ".join(_dependency_label(dep) for dep in group.dependencies)
            table.add_row(
                escape(group.name),
                escape(", ".join(group.rules.patterns)),
                escape(", ".join(group.rules.exclude_patterns)) or "-",
                escape(members) or "[yellow]none[/yellow]",
            )

        self.console.print(table)
        self.console.print()

    def _print_ungrouped(self, ungrouped: List[Dependency]) -> None:
        if not ungrouped:
            self.console.print("✅ Every dependency belongs to a group.", style="green")
            return

        self.console.print(f"[bold]Ungrouped dependencies ({len(ungrouped)}):[/bold]")
        for dependency in ungrouped:
            self.console.print(f"   • {escape(_dependency_label(dependency))}")
