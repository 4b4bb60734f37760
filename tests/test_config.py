"""Tests for codecontext.config."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from codecontext.config import (
    CONFIG_FILENAME,
    CodeContextConfig,
    ConfigError,
    default_config_payload,
    load_config,
    write_default_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, CodeContextConfig)
    assert config.root == tmp_path.resolve()
    assert config.file_extensions == ["swift"]
    assert ".build" in config.exclude_paths
    assert config.max_files_analyze == 10000
    assert config.git_commit_limit == 1000
    assert config.enable_cache is True
    assert config.enable_parallel is True
    assert config.max_workers is None
    assert config.hotspot_count == 15
    assert config.graph.damping == 0.85
    assert config.graph.iterations == 100
    assert config.resolved_cache_dir == tmp_path.resolve() / ".codecontext" / "cache"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        """
file_extensions: [swift, m, h]
exclude_paths:
  - Pods
  - Generated
max_files_analyze: 500
git_commit_limit: 25
enable_cache: false
enable_parallel: "no"
max_workers: 4
hotspot_count: 5
learning_path_length: 8
cache_dir: /tmp/codecontext-cache
graph:
  damping: 0.9
  iterations: 40
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.file_extensions == ["swift", "m", "h"]
    assert config.exclude_paths == ["Pods", "Generated"]
    assert config.max_files_analyze == 500
    assert config.git_commit_limit == 25
    assert config.enable_cache is False
    assert config.enable_parallel is False
    assert config.max_workers == 4
    assert config.hotspot_count == 5
    assert config.learning_path_length == 8
    assert config.resolved_cache_dir == Path("/tmp/codecontext-cache")
    assert config.graph.damping == 0.9
    assert config.graph.iterations == 40


def test_load_config_ignores_non_positive_limits(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text(
        "max_files_analyze: 0\nhotspot_count: -3\nmax_workers: 0\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.max_files_analyze == 10000
    assert config.hotspot_count == 15
    assert config.max_workers is None


def test_load_config_accepts_explicit_file_path(tmp_path: Path) -> None:
    config_file = tmp_path / CONFIG_FILENAME
    config_file.write_text("hotspot_count: 3\n", encoding="utf-8")

    assert load_config(config_file).hotspot_count == 3


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("file_extensions: [swift\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("- swift\n- m\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(tmp_path)


def test_load_config_rejects_out_of_range_damping(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("graph:\n  damping: 1.5\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="damping"):
        load_config(tmp_path)


def test_write_default_config_round_trips(tmp_path: Path) -> None:
    written = write_default_config(tmp_path)

    assert written == (tmp_path / CONFIG_FILENAME).resolve()
    assert yaml.safe_load(written.read_text(encoding="utf-8")) == default_config_payload()

    config = load_config(tmp_path)
    defaults = CodeContextConfig(root=tmp_path.resolve())
    assert config == defaults


def test_write_default_config_refuses_to_overwrite(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILENAME).write_text("hotspot_count: 2\n", encoding="utf-8")

    with pytest.raises(FileExistsError):
        write_default_config(tmp_path)

    assert load_config(tmp_path).hotspot_count == 2
