import sys
import uuid
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .cli_config import (
    OUTPUT_FORMATS,
    create_sample_config,
    get_config,
    load_dependencies,
    load_group_configs,
)
from .dependency import Dependency
from .dependency_group_engine import DependencyGroupEngine
from .error_handling import DependencyGroupError
from .reporting import GroupingReporter, grouping_results_to_json
from .structured_logging import configure_logging, get_cli_logger, get_event_logger
from .wildcard_matcher import match_type, matches

__version__ = "1.0.0"

console = Console()
logger = get_cli_logger()


def build_engine(groups_file: str) -> DependencyGroupEngine:
    """Load group definitions and build the engine."""
    try:
        return DependencyGroupEngine.from_configuration(
            load_group_configs(Path(groups_file))
        )
    except DependencyGroupError as e:
        raise click.ClickException(f"Invalid group definitions: {e}")


def read_dependencies(dependencies_file: str) -> List[Dependency]:
    try:
        return load_dependencies(Path(dependencies_file))
    except DependencyGroupError as e:
        raise click.ClickException(f"Invalid dependency list: {e}")


def output_json_results(
    engine: DependencyGroupEngine, output_file: Optional[str] = None
) -> None:
    """Export results as JSON."""
    json_output = grouping_results_to_json(engine)

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(json_output)
        console.print(f"✅ Results saved to {escape(str(output_file))}", style="green")
    else:
        click.echo(json_output)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 Dep-Grouper: dependency group assignment

    Sorts dependencies into the groups whose name patterns they match
    and reports the ones left ungrouped.
    """
    if version:
        console.print(f"Dep-Grouper version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument(
    "groups_file", type=click.Path(exists=True, readable=True, dir_okay=False)
)
@click.argument(
    "dependencies_file", type=click.Path(exists=True, readable=True, dir_okay=False)
)
@click.option(
    "--output-format",
    type=click.Choice(list(OUTPUT_FORMATS), case_sensitive=False),
    default=None,
    help="Output format (defaults to the configured format)",
)
@click.option(
    "--output-file",
    type=click.Path(),
    help="Save JSON results to file",
)
@click.option(
    "--fail-on-ungrouped",
    is_flag=True,
    help="Exit with code 1 if any dependency matches no group",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
def group(
    groups_file: str,
    dependencies_file: str,
    output_format: Optional[str],
    output_file: Optional[str],
    fail_on_ungrouped: bool,
    quiet: bool,
):
    """
    Assign dependencies to groups.

    GROUPS_FILE holds the group definitions (JSON, TOML or YAML) and
    DEPENDENCIES_FILE a JSON list of dependencies.
    """
    config = get_config()
    configure_logging(
        "ERROR" if quiet else config.logging.log_level, config.logging.enable_json
    )

    output_format = (output_format or config.grouping.output_format).lower()
    output_file = output_file or config.grouping.output_file
    fail_on_ungrouped = fail_on_ungrouped or config.grouping.fail_on_ungrouped

    if output_file and output_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    engine = build_engine(groups_file)
    dependencies = read_dependencies(dependencies_file)

    events = get_event_logger()
    events.set_run_context(
        run_id=str(uuid.uuid4()),
        groups_file=groups_file,
        total_dependencies=len(dependencies),
    )
    try:
        engine.assign_to_groups(dependencies)
    finally:
        events.clear_run_context()

    if output_format == "json":
        output_json_results(engine, output_file)
    elif not quiet:
        GroupingReporter(console).print_grouping_results(engine, groups_file)

    if fail_on_ungrouped and engine.ungrouped_dependencies:
        logger.debug(
            "%d ungrouped dependencies, failing run", len(engine.ungrouped_dependencies)
        )
        sys.exit(1)


@cli.command()
@click.argument("name")
@click.argument("patterns", nargs=-1, required=True)
def match(name: str, patterns: List[str]):
    """Show which PATTERNS match the dependency NAME."""
    table = Table(title=f"🔍 {escape(name)}")
    table.add_column("Pattern", style="bold")
    table.add_column("Type")
    table.add_column("Match", justify="center")

    any_match = False
    for pattern in patterns:
        matched = matches(name, pattern)
        any_match = any_match or matched
        table.add_row(
            escape(pattern),
            match_type(pattern).value,
            "[green]yes[/green]" if matched else "[red]no[/red]",
        )

    console.print(table)
    if not any_match:
        sys.exit(1)


@cli.command()
def info():
    """Show information about group definitions and usage examples."""
    info_text = """
[bold blue]📋 Group Definition Files:[/bold blue]

• [green]JSON / TOML / YAML[/green] with a [cyan]dependency-groups[/cyan] list:
    [{"name": "...", "rules": {"patterns": [...], "exclude-patterns": [...]}}]
• or a dependabot-style [cyan]groups[/cyan] mapping:
    groups: {name: {patterns: [...], exclude-patterns: [...]}}

[bold blue]🔍 Pattern Rules:[/bold blue]

• [yellow]exact[/yellow] - a plain name matches only itself (case-sensitive)
• [yellow]pattern[/yellow] - [cyan]*[/cyan] matches any run of characters
• Exclude patterns win over include patterns
• A dependency joins every group it matches

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]DEP_GROUPER_OUTPUT_FORMAT[/cyan] - console or json
• [cyan]DEP_GROUPER_FAIL_ON_UNGROUPED[/cyan] - fail when dependencies are ungrouped
• [cyan]DEP_GROUPER_LOG_LEVEL[/cyan] - logging level
• [cyan]DEP_GROUPER_LOG_JSON[/cyan] - structured JSON logs

[bold blue]💡 Usage Examples:[/bold blue]

  dep-grouper group dependabot.yml dependencies.json
  dep-grouper group groups.json dependencies.json --output-format json
  dep-grouper match dummy-pkg-a "dummy-pkg-*"
  dep-grouper config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]Dep-Grouper Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".dep-grouper.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(
            f"⚠️  Config file already exists at {escape(str(config_path))}",
            style="yellow",
        )
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(
        f"✅ Created configuration file at {escape(str(config_path))}", style="green"
    )


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]📊 Grouping Settings:[/bold cyan]")
    console.print(f"  Output Format: {current_config.grouping.output_format}")
    console.print(f"  Output File: {escape(str(current_config.grouping.output_file or '-'))}")
    console.print(f"  Fail on Ungrouped: {current_config.grouping.fail_on_ungrouped}")

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  JSON Logs: {current_config.logging.enable_json}")


@config.command("validate")
@click.argument("groups_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(groups_file: str):
    """Validate a group definitions file."""
    engine = build_engine(groups_file)

    console.print(
        f"✅ Group definitions in {escape(groups_file)} are valid "
        f"({len(engine.dependency_groups)} groups)",
        style="green",
    )
    for name in engine.group_names():
        console.print(f"  • {escape(name)}")


if __name__ == "__main__":
    cli()
