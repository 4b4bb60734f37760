"""CLI parser and command behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from codecontext.cli import _build_parser, main
from codecontext.config import CONFIG_FILENAME
from codecontext.logging import configure_logging
from codecontext.models import CodebaseSnapshot
from codecontext.orchestrator import Orchestrator


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["clear-cache", "--verbose"])
    assert args.verbose is True
    assert args.command == "clear-cache"


def test_cli_accepts_analyze_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "repo", "--no-cache", "--clear-cache", "--output", "out.md"])
    assert args.path == "repo"
    assert args.no_cache is True
    assert args.clear_cache is True
    assert args.output == Path("out.md")
    assert args.verbose is False


def test_cli_requires_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_analyze_prints_hotspots(sample_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analyze", str(sample_repo), "--no-cache"])

    out = capsys.readouterr().out
    assert "Analysed 2 files on branch unknown: 1 dependencies" in out
    assert "Top hotspots:" in out
    assert " 1. Sources/Networking/APIClient.swift" in out


def test_analyze_writes_report(sample_repo: Path, tmp_path: Path) -> None:
    report = tmp_path / "summary.md"

    main(["analyze", str(sample_repo), "--output", str(report)])

    assert report.read_text(encoding="utf-8").startswith("# repo code context")
    assert (sample_repo / ".codecontext" / "cache").is_dir()


def test_analyze_exits_on_precondition_failure(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "No source files found" in capsys.readouterr().err


def test_init_writes_config_once(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["init", str(tmp_path)])

    assert (tmp_path / CONFIG_FILENAME).is_file()
    assert "Configuration created at" in capsys.readouterr().out

    with pytest.raises(SystemExit) as excinfo:
        main(["init", str(tmp_path)])
    assert excinfo.value.code == 1


def test_clear_cache_command(sample_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analyze", str(sample_repo)])
    cache_dir = sample_repo / ".codecontext" / "cache"
    assert list(cache_dir.glob("*.json"))

    main(["clear-cache", str(sample_repo)])

    assert list(cache_dir.glob("*.json")) == []
    assert "Cache cleared at" in capsys.readouterr().out


def test_cli_accepts_logging_options_after_command() -> None:
    args = _build_parser().parse_args(["init", "--quiet", "--log-file", "run.log"])
    assert args.quiet is True
    assert args.log_file == Path("run.log")
    assert args.verbose is False


def test_analyze_writes_log_file(sample_repo: Path, tmp_path: Path) -> None:
    log_file = tmp_path / "codecontext.log"

    main(["--quiet", "--log-file", str(log_file), "analyze", str(sample_repo), "--no-cache"])

    text = log_file.read_text(encoding="utf-8")
    assert "Starting analysis of" in text
    assert "Graph complete: 2 nodes, 1 edges" in text
    configure_logging()


def test_cli_accepts_evolution_window() -> None:
    args = _build_parser().parse_args(["evolution", "repo", "--months", "3", "--interval", "14"])
    assert (args.path, args.months, args.interval) == ("repo", 3, 14)

    defaults = _build_parser().parse_args(["evolution"])
    assert (defaults.months, defaults.interval) == (6, 30)


@pytest.mark.parametrize("value", ["0", "-2", "soon"])
def test_cli_rejects_invalid_evolution_window(value: str) -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["evolution", "--months", value])


def test_evolution_prints_snapshots_and_growth(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    snapshots = [
        CodebaseSnapshot(1_600_000_000, "a" * 40, total_files=4, total_lines=200),
        CodebaseSnapshot(1_700_000_000, "b" * 40, total_files=5, total_lines=260),
    ]
    monkeypatch.setattr(Orchestrator, "run_evolution", lambda self, path, **_: snapshots)

    main(["evolution", str(tmp_path)])

    out = capsys.readouterr().out
    assert "2020-09-13 | aaaaaaa | Files: 4 | Lines: 200" in out
    assert "2023-11-14 | bbbbbbb | Files: 5 | Lines: 260" in out
    assert "Net growth: 25.0%" in out


def test_evolution_without_history(sample_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["evolution", str(sample_repo)])

    assert "No history found. Is this a git repository?" in capsys.readouterr().out
