"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: kwargs > env > repo yaml > global yaml > defaults
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from covmerge.config.loader import REPO_CONFIG_NAME, _deep_merge, _load_yaml, load_config
from covmerge.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def global_config(tmp_path: Path) -> Iterator[Path]:
    """Point the global config at a temp file that tests may create."""
    path = tmp_path / "global" / "config.yaml"
    with patch("covmerge.config.loader.GLOBAL_CONFIG_PATH", path):
        yield path


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("report:\n  text_summary: false\n")

        assert _load_yaml(yaml_file) == {"report": {"text_summary": False}}

    def test_returns_empty_for_yaml_null(self, tmp_path: Path) -> None:
        """Returns empty dict for YAML containing null."""
        yaml_file = tmp_path / "null.yaml"
        yaml_file.write_text("null\n")

        assert _load_yaml(yaml_file) == {}

    def test_raises_on_invalid_yaml(self, tmp_path: Path) -> None:
        """Malformed YAML raises ConfigError."""
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text("report: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_on_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a configuration."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_nested_values_merged(self) -> None:
        base = {"report": {"output_file": "a.json", "text_summary": True}}
        override = {"report": {"text_summary": False}, "remap": {"enabled": False}}

        assert _deep_merge(base, override) == {
            "report": {"output_file": "a.json", "text_summary": False},
            "remap": {"enabled": False},
        }

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults(self, work_dir: Path) -> None:
        config = load_config(work_dir)
        assert config.report.output_file == "coverage-merged.json"
        assert config.remap.enabled is True
        assert config.thresholds.enforce is False

    def test_repo_yaml_overrides_global(self, work_dir: Path, global_config: Path) -> None:
        global_config.parent.mkdir(parents=True)
        global_config.write_text("report:\n  output_file: global.json\n  max_cols: 100\n")
        (work_dir / REPO_CONFIG_NAME).write_text("report:\n  output_file: repo.json\n")

        config = load_config(work_dir)

        assert config.report.output_file == "repo.json"
        assert config.report.max_cols == 100

    def test_env_overrides_yaml(self, work_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (work_dir / REPO_CONFIG_NAME).write_text("remap:\n  build_dir: out\n")
        monkeypatch.setenv("COVMERGE__REMAP__BUILD_DIR", "dist")

        assert load_config(work_dir).remap.build_dir == "dist"

    def test_kwargs_override_env(self, work_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COVMERGE__THRESHOLDS__ENFORCE", "false")

        config = load_config(work_dir, thresholds={"enforce": True})

        assert config.thresholds.enforce is True

    def test_kwargs_keep_other_section_values(self, work_dir: Path) -> None:
        (work_dir / REPO_CONFIG_NAME).write_text("report:\n  text_summary: false\n")

        config = load_config(work_dir, report={"output_file": "x.json"})

        assert config.report.output_file == "x.json"
        assert config.report.text_summary is False

    def test_invalid_value_raises_config_error(self, work_dir: Path) -> None:
        (work_dir / REPO_CONFIG_NAME).write_text("report:\n  max_cols: 10\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(work_dir)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "report.max_cols" in exc_info.value.message

    def test_defaults_to_cwd(self, work_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (work_dir / REPO_CONFIG_NAME).write_text("sourcemaps:\n  enabled: false\n")
        monkeypatch.chdir(work_dir)

        assert load_config().sourcemaps.enabled is False
