"""Pipeline orchestration: scan, parse, enrich, graph, rank."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List

from .config import CodeContextConfig, ConfigError, load_config
from .errors import PathError, PreconditionError
from .git import EvolutionAnalyzer, GitHistoryAnalyzer, merge_author_touches
from .graph import DependencyGraph
from .learning_path import LearningPathGenerator
from .logging import get_logger
from .models import AuthorStats, CodebaseSnapshot, Hotspot, LearningStep, ParsedFile
from .parsers import ParserRegistry
from .pipeline import ParallelParser
from .repo_scanner import RepoScanner
from .stores import ParseCache

GitFactory = Callable[[Path, int], GitHistoryAnalyzer]
EvolutionFactory = Callable[[Path, CodeContextConfig], EvolutionAnalyzer]


@dataclass
class AnalysisResult:
    """Everything a single analysis run produced."""

    root: Path
    config: CodeContextConfig
    graph: DependencyGraph
    parsed_files: List[ParsedFile]
    enriched_files: List[ParsedFile]
    branch_name: str = "unknown"
    author_stats: Dict[str, AuthorStats] = field(default_factory=dict)
    hotspots: List[Hotspot] = field(default_factory=list)
    learning_path: List[LearningStep] = field(default_factory=list)
    duration: float = 0.0

    @property
    def file_count(self) -> int:
        return len(self.enriched_files)


def _default_git_factory(root: Path, commit_limit: int) -> GitHistoryAnalyzer:
    return GitHistoryAnalyzer(root, commit_limit=commit_limit)


def _default_evolution_factory(root: Path, config: CodeContextConfig) -> EvolutionAnalyzer:
    return EvolutionAnalyzer(
        root, file_extensions=config.file_extensions, exclude_paths=config.exclude_paths
    )


class Orchestrator:
    """Coordinates a full analysis run over one repository."""

    def __init__(
        self,
        scanner: RepoScanner | None = None,
        registry: ParserRegistry | None = None,
        git_factory: GitFactory | None = None,
        learning_path: LearningPathGenerator | None = None,
        evolution_factory: EvolutionFactory | None = None,
    ) -> None:
        self.scanner = scanner
        self.registry = registry
        self.git_factory = git_factory or _default_git_factory
        self.learning_path = learning_path or LearningPathGenerator()
        self.evolution_factory = evolution_factory or _default_evolution_factory
        self.logger = get_logger("orchestrator")

    def run_analysis(
        self,
        path: str | Path,
        *,
        use_cache: bool = True,
        config: CodeContextConfig | None = None,
    ) -> AnalysisResult:
        started = time.perf_counter()
        repo_path = _resolve_root(path)

        config = config or self._load_config(repo_path)
        self.logger.info("Starting analysis of %s", repo_path)

        scanner = self.scanner or RepoScanner(config.file_extensions, config.exclude_paths)
        files = scanner.scan(repo_path)
        self.logger.info("Found %d files", len(files))
        self._check_preconditions(len(files), config)

        cache = self._build_cache(config) if use_cache and config.enable_cache else None
        max_workers = config.max_workers if config.enable_parallel else 1
        parser = ParallelParser(cache, registry=self.registry, max_workers=max_workers)
        parsed_files = parser.parse_files(files)
        self.logger.info("Parsed %d files", len(parsed_files))

        if cache is not None:
            cache.prune(files)

        git = self.git_factory(repo_path, config.git_commit_limit)
        enriched_files = git.enrich(parsed_files)
        branch_name = git.current_branch()
        author_stats = merge_author_touches(git.author_stats(), enriched_files)

        graph = DependencyGraph()
        graph.build(enriched_files)
        graph.analyze(damping=config.graph.damping, iterations=config.graph.iterations)

        result = AnalysisResult(
            root=repo_path,
            config=config,
            graph=graph,
            parsed_files=parsed_files,
            enriched_files=enriched_files,
            branch_name=branch_name,
            author_stats=author_stats,
            hotspots=graph.get_top_hotspots(config.hotspot_count),
            learning_path=self.learning_path.generate(graph, config.learning_path_length),
        )
        result.duration = time.perf_counter() - started
        self.logger.info("Analysis finished in %.1fs", result.duration)
        return result

    def run_evolution(
        self,
        path: str | Path,
        *,
        months: int = 6,
        interval_days: int = 30,
        config: CodeContextConfig | None = None,
    ) -> List[CodebaseSnapshot]:
        """Sample the repository history and total source files and lines per snapshot."""
        repo_path = _resolve_root(path)
        config = config or self._load_config(repo_path)
        self.logger.info(
            "Looking back %d months, every %d days, in %s", months, interval_days, repo_path
        )
        return self.evolution_factory(repo_path, config).analyze(months, interval_days)

    def clear_cache(self, path: str | Path) -> Path:
        """Empty the parse cache for the repository at ``path``."""
        repo_path = Path(path).expanduser().resolve()
        config = self._load_config(repo_path)
        cache = self._build_cache(config)
        cache.clear()
        self.logger.info("Cleared parse cache at %s", cache.directory)
        return cache.directory

    # ------------------------------------------------------------------
    # Helpers

    def _load_config(self, repo_path: Path) -> CodeContextConfig:
        try:
            return load_config(repo_path)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            return CodeContextConfig(root=repo_path)

    @staticmethod
    def _check_preconditions(count: int, config: CodeContextConfig) -> None:
        if count == 0:
            supported = ", ".join(config.file_extensions)
            raise PreconditionError(f"No source files found. Supported: {supported}")
        if count > config.max_files_analyze:
            raise PreconditionError(
                f"Too many files ({count}). Limit: {config.max_files_analyze}. "
                "Raise max_files_analyze in .codecontext.yml or narrow exclude_paths."
            )

    def _build_cache(self, config: CodeContextConfig) -> ParseCache:
        return ParseCache(config.resolved_cache_dir)


def _resolve_root(path: str | Path) -> Path:
    repo_path = Path(path).expanduser().resolve()
    if not repo_path.is_dir():
        kind = "does not exist" if not repo_path.exists() else "is not a directory"
        raise PathError(f"Path {kind}: {path}")
    return repo_path


__all__ = ["AnalysisResult", "Orchestrator"]
