"""CLI entrypoints for codecontext commands."""

from __future__ import annotations

import argparse
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import List

from .config import write_default_config
from .errors import PreconditionError
from .git import net_growth
from .logging import configure_logging
from .models import CodebaseSnapshot
from .orchestrator import AnalysisResult, Orchestrator
from .report import SummaryRenderer


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    """Logging flags are accepted before or after the sub-command."""
    flag_default = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=flag_default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=flag_default,
        help="Only log warnings and errors to the console.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write a DEBUG-level log to this file.",
    )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codecontext",
        description="Rank source files by structural importance and suggest a reading order.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Scan, parse and rank the files of a repository.",
    )
    _add_logging_options(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Parse every file without reading or writing the parse cache.",
    )
    analyze_parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Empty the parse cache before analysing.",
    )
    analyze_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write a markdown summary report to this file.",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Write a default .codecontext.yml into the repository.",
    )
    _add_logging_options(init_parser, suppress_default=True)
    _add_path_argument(init_parser)

    evolution_parser = subparsers.add_parser(
        "evolution",
        help="Report how source file and line totals changed over recent history.",
    )
    _add_logging_options(evolution_parser, suppress_default=True)
    _add_path_argument(evolution_parser)
    evolution_parser.add_argument(
        "--months",
        type=_positive_int,
        default=6,
        help="How many months of history to look back over (default: 6).",
    )
    evolution_parser.add_argument(
        "--interval",
        type=_positive_int,
        default=30,
        help="Days between sampled snapshots (default: 30).",
    )

    clear_parser = subparsers.add_parser(
        "clear-cache",
        help="Remove every entry from the parse cache.",
    )
    _add_logging_options(clear_parser, suppress_default=True)
    _add_path_argument(clear_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for codecontext commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )

    orchestrator = Orchestrator()

    if args.command == "analyze":
        if args.clear_cache:
            orchestrator.clear_cache(args.path)
        try:
            result = orchestrator.run_analysis(args.path, use_cache=not args.no_cache)
        except PreconditionError as exc:
            parser.exit(1, f"{exc}\n")
        _print_summary(result)
        if args.output is not None:
            written = SummaryRenderer().write(result, args.output)
            print(f"Report written to {_relativize(written)}")
    elif args.command == "init":
        try:
            config_path = write_default_config(Path(args.path))
        except FileExistsError as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Configuration created at {_relativize(config_path)}")
    elif args.command == "evolution":
        try:
            snapshots = orchestrator.run_evolution(
                args.path, months=args.months, interval_days=args.interval
            )
        except PreconditionError as exc:
            parser.exit(1, f"{exc}\n")
        _print_evolution(snapshots)
    elif args.command == "clear-cache":
        cache_dir = orchestrator.clear_cache(args.path)
        print(f"Cache cleared at {_relativize(cache_dir)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_summary(result: AnalysisResult) -> None:
    graph = result.graph
    print(
        f"Analysed {result.file_count} files on branch {result.branch_name}: "
        f"{len(graph.edges)} dependencies in {result.duration:.1f}s"
    )
    if graph.has_cycles:
        print("Circular dependencies detected.")
    if result.hotspots:
        print("Top hotspots:")
        for position, hotspot in enumerate(result.hotspots, start=1):
            print(f"  {position:>2}. {_display(hotspot.path, result.root)} ({hotspot.score:.4f})")


def _print_evolution(snapshots: List[CodebaseSnapshot]) -> None:
    if not snapshots:
        print("No history found. Is this a git repository?")
        return
    print("Evolution report:")
    for snapshot in snapshots:
        day = datetime.fromtimestamp(snapshot.timestamp, UTC).strftime("%Y-%m-%d")
        print(
            f"{day} | {snapshot.short_hash} | Files: {snapshot.total_files} "
            f"| Lines: {snapshot.total_lines}"
        )
    growth = net_growth(snapshots)
    if growth is not None:
        print(f"Net growth: {growth:.1f}%")


def _display(path: str, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
