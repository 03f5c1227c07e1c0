"""
Integration tests for dep-grouper.
Tests group definition loading, configuration, reporting, and logging together.
"""

import json
import logging
from io import StringIO

import pytest
from rich.console import Console

from dep_grouper.cli_config import (
    ToolConfig,
    get_config,
    load_dependencies,
    load_group_configs,
    normalise_group_configs,
    validate_config_values,
)
from dep_grouper.dependency_group_engine import DependencyGroupEngine
from dep_grouper.error_handling import ConfigurationError
from dep_grouper.reporting import GroupingReporter, grouping_results_to_dict
from dep_grouper.structured_logging import StructuredFormatter


class TestGroupDefinitionLoading:
    """Test reading group definitions in every supported format."""

    def test_json_descriptor_list(self, groups_json_file, dependency_groups_config):
        assert load_group_configs(groups_json_file) == dependency_groups_config

    def test_dependabot_yaml_mapping(self, dependabot_yml_file, dependency_groups_config):
        assert load_group_configs(dependabot_yml_file) == dependency_groups_config

    def test_toml_descriptor_list(self, temp_dir):
        path = temp_dir / "groups.toml"
        path.write_text(
            """[[dependency-groups]]
name = "rails"
rules = { patterns = ["rails*", "action*"], exclude-patterns = ["actioncable"] }
"""
        )

        assert load_group_configs(path) == [
            {
                "name": "rails",
                "rules": {
                    "patterns": ["rails*", "action*"],
                    "exclude-patterns": ["actioncable"],
                },
            }
        ]

    def test_bare_list(self, dependency_groups_config):
        assert normalise_group_configs(dependency_groups_config) == dependency_groups_config

    def test_missing_groups_section(self):
        with pytest.raises(ConfigurationError):
            normalise_group_configs({"updates": []})

    def test_unsupported_suffix(self, temp_dir):
        path = temp_dir / "groups.ini"
        path.write_text("[groups]")

        with pytest.raises(ConfigurationError, match="Unsupported file type"):
            load_group_configs(path)

    def test_numeric_yaml_group_name_is_rejected(self, temp_dir):
        path = temp_dir / "dependabot.yml"
        path.write_text("groups:\n  2024:\n    patterns: ['x*']\n")

        configs = load_group_configs(path)

        assert configs == [{"name": 2024, "rules": {"patterns": ["x*"]}}]
        with pytest.raises(ConfigurationError, match="must be a string"):
            DependencyGroupEngine.from_configuration(configs)

    def test_null_yaml_pattern_is_rejected(self, temp_dir):
        path = temp_dir / "dependabot.yml"
        path.write_text("groups:\n  g:\n    patterns: [~]\n")

        with pytest.raises(ConfigurationError, match="must be a list of strings"):
            DependencyGroupEngine.from_configuration(load_group_configs(path))


class TestDependencyLoading:
    """Test reading dependency lists."""

    def test_names_and_objects(self, dependencies_json_file):
        dependencies = load_dependencies(dependencies_json_file)

        assert [dep.name for dep in dependencies] == [
            "dummy-pkg-a",
            "dummy-pkg-b",
            "dummy-pkg-c",
            "ungrouped_pkg",
        ]
        assert dependencies[0].version == "1.1.0"
        assert dependencies[0].package_manager == "bundler"
        assert dependencies[3].version is None
        assert dependencies[3].source_file == "dependencies.json"

    def test_wrapped_in_mapping(self, temp_dir):
        path = temp_dir / "deps.json"
        path.write_text(json.dumps({"dependencies": [{"name": "rails"}]}))

        assert [dep.name for dep in load_dependencies(path)] == ["rails"]

    def test_item_without_name(self, temp_dir):
        path = temp_dir / "deps.json"
        path.write_text(json.dumps([{"version": "1.0.0"}]))

        with pytest.raises(ConfigurationError, match="has no name"):
            load_dependencies(path)


class TestConfiguration:
    """Test tool configuration loading."""

    def test_defaults(self):
        config = get_config()

        assert config.grouping.output_format == "console"
        assert config.grouping.fail_on_ungrouped is False
        assert config.logging.log_level == "WARNING"

    def test_config_file_in_working_directory(self, temp_dir):
        (temp_dir / ".dep-grouper.json").write_text(
            json.dumps({"grouping": {"output-format": "json", "fail_on_ungrouped": True}})
        )

        config = get_config()

        assert config.grouping.output_format == "json"
        assert config.grouping.fail_on_ungrouped is True

    def test_toml_config_file(self, temp_dir):
        (temp_dir / ".dep-grouper.toml").write_text('[logging]\nlog_level = "DEBUG"\n')

        assert get_config().logging.log_level == "DEBUG"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DEP_GROUPER_OUTPUT_FORMAT", "JSON")
        monkeypatch.setenv("DEP_GROUPER_LOG_LEVEL", "info")
        monkeypatch.setenv("DEP_GROUPER_LOG_JSON", "yes")

        config = get_config()

        assert config.grouping.output_format == "json"
        assert config.logging.log_level == "INFO"
        assert config.logging.enable_json is True

    def test_invalid_values_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("DEP_GROUPER_OUTPUT_FORMAT", "xml")

        assert get_config().grouping.output_format == "console"

    def test_validate_config_values(self):
        config = ToolConfig()
        assert validate_config_values(config) == []

        config.logging.log_level = "LOUD"
        assert validate_config_values(config) == [
            "logging.log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        ]

    def test_non_string_log_level_falls_back_to_default(self, temp_dir):
        (temp_dir / ".dep-grouper.json").write_text(
            json.dumps({"grouping": {"output_format": 1}, "logging": {"log_level": 10}})
        )

        config = get_config()

        assert config.grouping.output_format == "console"
        assert config.logging.log_level == "WARNING"

    def test_validate_config_values_reports_non_string_values(self):
        config = ToolConfig()
        config.grouping.output_format = None
        config.logging.log_level = 10

        assert validate_config_values(config) == [
            "grouping.output_format must be one of: console, json",
            "logging.log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL",
        ]


class TestEndToEndGrouping:
    """Test loading, assigning, and reporting together."""

    def test_yaml_groups_with_json_dependencies(
        self, dependabot_yml_file, dependencies_json_file
    ):
        engine = DependencyGroupEngine.from_configuration(
            load_group_configs(dependabot_yml_file)
        )
        engine.assign_to_groups(load_dependencies(dependencies_json_file))

        results = grouping_results_to_dict(engine)

        assert [
            [dep["name"] for dep in group["dependencies"]] for group in results["groups"]
        ] == [["dummy-pkg-a", "dummy-pkg-c"], ["dummy-pkg-b", "dummy-pkg-c"]]
        assert results["ungrouped_dependencies"] == [
            {"name": "ungrouped_pkg", "version": None}
        ]
        assert results["groups"][0]["rules"] == {
            "patterns": ["dummy-pkg-*"],
            "exclude-patterns": ["dummy-pkg-b"],
        }

    def test_console_report_lists_empty_groups(self, dependency_groups_config, ungrouped_pkg):
        engine = DependencyGroupEngine.from_configuration(
            dependency_groups_config, logger=logging.getLogger("test.silent")
        )
        engine.assign_to_groups([ungrouped_pkg])

        output = StringIO()
        GroupingReporter(Console(file=output, width=120)).print_grouping_results(
            engine, "groups.json"
        )
        text = output.getvalue()

        assert "Groups with no matching dependencies: group-a, group-b" in text
        assert "ungrouped_pkg" in text

    def test_console_report_without_groups(self, dummy_pkg_a):
        engine = DependencyGroupEngine.from_configuration([])
        engine.assign_to_groups([dummy_pkg_a])

        output = StringIO()
        GroupingReporter(Console(file=output, width=120)).print_grouping_results(
            engine, "groups.json"
        )

        assert "No dependency groups configured." in output.getvalue()


class TestStructuredLogging:
    """Test the JSON log formatter."""

    def test_extra_fields_are_included(self):
        record = logging.LogRecord(
            "dep_grouper.events", logging.INFO, __file__, 1, "assignment_completed", None, None
        )
        record.event_type = "assignment_completed"
        record.ungrouped_count = 3

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["component"] == "dep_grouper.events"
        assert entry["message"] == "assignment_completed"
        assert entry["event_type"] == "assignment_completed"
        assert entry["ungrouped_count"] == 3
