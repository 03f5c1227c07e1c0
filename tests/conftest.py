"""
Shared fixtures for dep-grouper tests.
"""

import json

import pytest

from dep_grouper.cli_config import reset_config
from dep_grouper.dependency import Dependency


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config discovery away from the developer's real files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in (
        "DEP_GROUPER_OUTPUT_FORMAT",
        "DEP_GROUPER_FAIL_ON_UNGROUPED",
        "DEP_GROUPER_LOG_LEVEL",
        "DEP_GROUPER_LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def dependency_groups_config():
    return [
        {
            "name": "group-a",
            "rules": {
                "patterns": ["dummy-pkg-*"],
                "exclude-patterns": ["dummy-pkg-b"],
            },
        },
        {
            "name": "group-b",
            "rules": {"patterns": ["dummy-pkg-b", "dummy-pkg-c"]},
        },
    ]


def _bundler_dependency(name):
    return Dependency(
        name=name, version="1.1.0", package_manager="bundler", source_file="Gemfile"
    )


@pytest.fixture
def dummy_pkg_a():
    return _bundler_dependency("dummy-pkg-a")


@pytest.fixture
def dummy_pkg_b():
    return _bundler_dependency("dummy-pkg-b")


@pytest.fixture
def dummy_pkg_c():
    return _bundler_dependency("dummy-pkg-c")


@pytest.fixture
def ungrouped_pkg():
    return _bundler_dependency("ungrouped_pkg")


@pytest.fixture
def groups_json_file(temp_dir, dependency_groups_config):
    path = temp_dir / "groups.json"
    path.write_text(json.dumps({"dependency-groups": dependency_groups_config}))
    return path


@pytest.fixture
def dependabot_yml_file(temp_dir):
    path = temp_dir / "dependabot.yml"
    path.write_text(
        """groups:
  group-a:
    patterns:
      - "dummy-pkg-*"
    exclude-patterns:
      - "dummy-pkg-b"
  group-b:
    patterns:
      - "dummy-pkg-b"
      - "dummy-pkg-c"
"""
    )
    return path


@pytest.fixture
def dependencies_json_file(temp_dir):
    path = temp_dir / "dependencies.json"
    path.write_text(
        json.dumps(
            [
                {"name": "dummy-pkg-a", "version": "1.1.0", "package-manager": "bundler"},
                {"name": "dummy-pkg-b", "version": "1.1.0", "package-manager": "bundler"},
                {"name": "dummy-pkg-c", "version": "1.1.0", "package-manager": "bundler"},
                "ungrouped_pkg",
            ]
        )
    )
    return path
