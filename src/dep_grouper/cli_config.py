"""
Configuration management for dep-grouper.

Loads tool settings from config files and environment variables, and reads
dependency group definitions and dependency lists for the command line.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

from .dependency import Dependency
from .dependency_group import EXCLUDE_PATTERNS_KEY, PATTERNS_KEY
from .error_handling import ConfigurationError

console = Console(stderr=True)

OUTPUT_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class GroupingConfig:
    """Grouping run configuration."""

    output_format: str = "console"
    output_file: Optional[str] = None
    fail_on_ungrouped: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    enable_json: bool = False


@dataclass
class ToolConfig:
    """Main configuration containing all subsections."""

    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Global configuration instance
_global_config: Optional[ToolConfig] = None


def _is_output_format(value: Any) -> bool:
    return isinstance(value, str) and value in OUTPUT_FORMATS


def _is_log_level(value: Any) -> bool:
    return isinstance(value, str) and value.upper() in LOG_LEVELS


def validate_config_values(config: ToolConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not _is_output_format(config.grouping.output_format):
        errors.append(
            f"grouping.output_format must be one of: {', '.join(OUTPUT_FORMATS)}"
        )
    if not _is_log_level(config.logging.log_level):
        errors.append(f"logging.log_level must be one of: {', '.join(LOG_LEVELS)}")

    return errors


def read_structured_file(path: Path) -> Any:
    """
    Read a JSON, TOML or YAML file based on its suffix.

    Raises:
        ConfigurationError: If the suffix is unsupported or the content is invalid
    """
    loaders = {
        ".json": json.load,
        ".toml": toml.load,
        ".yaml": yaml.safe_load,
        ".yml": yaml.safe_load,
    }
    loader = loaders.get(path.suffix.lower())
    if loader is None:
        raise ConfigurationError(
            f"Unsupported file type '{path.suffix}' (expected .json, .toml, .yaml or .yml)"
        )

    try:
        with open(path, encoding="utf-8") as f:
            return loader(f)
    except (json.JSONDecodeError, toml.TomlDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not parse {path.name}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from file."""
    if not config_path.exists():
        return None

    try:
        data = read_structured_file(config_path)
    except ConfigurationError as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow")
        return None

    if not isinstance(data, dict):
        console.print(
            f"⚠️  Ignoring config at {config_path}: expected a mapping", style="yellow"
        )
        return None
    return data


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".dep-grouper.json",
        Path.cwd() / ".dep-grouper.toml",
        Path.cwd() / ".dep-grouper.yaml",
        Path.home() / ".config" / "dep-grouper" / "config.json",
        Path.home() / ".config" / "dep-grouper" / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ToolConfig) -> None:
    """Load environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    config.grouping.fail_on_ungrouped = get_env_bool(
        "DEP_GROUPER_FAIL_ON_UNGROUPED", config.grouping.fail_on_ungrouped
    )
    if output_format := os.environ.get("DEP_GROUPER_OUTPUT_FORMAT"):
        config.grouping.output_format = output_format.lower()

    if log_level := os.environ.get("DEP_GROUPER_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()
    config.logging.enable_json = get_env_bool(
        "DEP_GROUPER_LOG_JSON", config.logging.enable_json
    )


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        attribute = key.replace("-", "_")
        if hasattr(config, attribute):
            setattr(config, attribute, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def load_config() -> ToolConfig:
    """Load configuration from file and environment."""
    config = ToolConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            if "grouping" in file_config:
                apply_config_section(config.grouping, file_config["grouping"], "grouping")
            if "logging" in file_config:
                apply_config_section(config.logging, file_config["logging"], "logging")

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        defaults = ToolConfig()
        if not _is_output_format(config.grouping.output_format):
            config.grouping.output_format = defaults.grouping.output_format
        if not _is_log_level(config.logging.log_level):
            config.logging.log_level = defaults.logging.log_level

    return config


def get_config() -> ToolConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample tool configuration."""
    return json.dumps(ToolConfig().to_dict(), indent=2)


def normalise_group_configs(data: Any) -> List[Dict[str, Any]]:
    """
    Convert a group definition document to ``[{"name", "rules"}]`` form.

    Accepts either a ``dependency-groups`` list of descriptors or a
    ``groups`` mapping of name to rules, as written in dependabot.yml.
    A bare list is treated as the descriptor list.
    """
    if isinstance(data, list):
        return data

    if not isinstance(data, dict):
        raise ConfigurationError("group definitions must be a list or a mapping")

    if "dependency-groups" in data:
        groups = data["dependency-groups"] or []
        if not isinstance(groups, list):
            raise ConfigurationError("'dependency-groups' must be a list")
        return groups

    if "groups" in data:
        groups = data["groups"] or {}
        if not isinstance(groups, dict):
            raise ConfigurationError("'groups' must map group names to rules")

        descriptors = []
        for name, rules in groups.items():
            rules = rules or {}
            if not isinstance(rules, dict):
                raise ConfigurationError(f"rules for group '{name}' must be a mapping")
            descriptor_rules = {PATTERNS_KEY: rules.get(PATTERNS_KEY, [])}
            if EXCLUDE_PATTERNS_KEY in rules:
                descriptor_rules[EXCLUDE_PATTERNS_KEY] = rules[EXCLUDE_PATTERNS_KEY]
            descriptors.append({"name": name, "rules": descriptor_rules})
        return descriptors

    raise ConfigurationError(
        "no group definitions found (expected 'dependency-groups' or 'groups')"
    )


def load_group_configs(path: Path) -> List[Dict[str, Any]]:
    """Load dependency group definitions from a file."""
    return normalise_group_configs(read_structured_file(Path(path)))


def load_dependencies(path: Path) -> List[Dependency]:
    """
    Load a dependency list from a JSON file.

    Items may be plain names or objects with ``name`` and optional
    ``version`` and ``package-manager`` keys.

    Raises:
        ConfigurationError: If the file is not a list or an item has no name
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Could not parse {path.name}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("dependencies")
    if not isinstance(data, list):
        raise ConfigurationError("dependency file must contain a list of dependencies")

    dependencies = []
    for index, item in enumerate(data):
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not item.get("name"):
            raise ConfigurationError(f"dependency #{index + 1} has no name")

        dependencies.append(
            Dependency(
                name=str(item["name"]),
                version=item.get("version"),
                package_manager=item.get("package-manager")
                or item.get("package_manager")
                or "unknown",
                source_file=str(path.name),
            )
        )

    return dependencies
