"""Markdown summary of an analysis run."""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from .models import AuthorStats, FunctionInfo, ParsedFile
from .orchestrator import AnalysisResult

_LONGEST_FUNCTIONS = 10
_TOP_AUTHORS = 10


class SummaryRenderer:
    """Renders ``summary.md.j2`` from an :class:`AnalysisResult`."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        loader = FileSystemLoader(str(templates_dir or Path(__file__).with_name("templates")))
        self._env = Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)
        self._env.filters["relpath"] = _relative_to

    def render(self, result: AnalysisResult) -> str:
        files = result.enriched_files
        template = self._env.get_template("summary.md.j2")
        return template.render(
            project_name=result.root.name or "Repository",
            root=result.root,
            generated_at=datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC"),
            branch=result.branch_name,
            file_count=len(files),
            line_count=sum(parsed.line_count for parsed in files),
            edge_count=len(result.graph.edges),
            has_cycles=result.graph.has_cycles,
            hotspots=result.hotspots,
            learning_path=result.learning_path,
            debt=_debt_by_package(files),
            longest_functions=_longest_functions(files),
            authors=_top_authors(result),
            duration=result.duration,
        )

    def write(self, result: AnalysisResult, destination: Path) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(self.render(result), encoding="utf-8")
        return destination


def _relative_to(path: str, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path


def _debt_by_package(files: Sequence[ParsedFile]) -> List[Tuple[str, int, int]]:
    totals: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for parsed in files:
        if not parsed.todo_count and not parsed.fixme_count:
            continue
        bucket = totals[parsed.package_name or "(none)"]
        bucket[0] += parsed.todo_count
        bucket[1] += parsed.fixme_count
    rows = [(package, todo, fixme) for package, (todo, fixme) in totals.items()]
    rows.sort(key=lambda row: (-(row[1] + row[2]), row[0]))
    return rows


def _longest_functions(files: Sequence[ParsedFile]) -> List[FunctionInfo]:
    functions = [parsed.longest_function for parsed in files if parsed.longest_function]
    functions.sort(key=lambda info: (-info.line_count, info.file_path, info.name))
    return functions[:_LONGEST_FUNCTIONS]


def _top_authors(result: AnalysisResult) -> List[Tuple[str, AuthorStats]]:
    ranked = sorted(
        result.author_stats.items(),
        key=lambda item: (-item[1].total_commits, item[0]),
    )
    return ranked[:_TOP_AUTHORS]


__all__ = ["SummaryRenderer"]
