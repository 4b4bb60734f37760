"""Directed file dependency graph with PageRank scoring."""

from __future__ import annotations

import heapq
import re
import time
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .models import DeclarationKind, Hotspot, ParsedFile

DEFAULT_DAMPING = 0.85
DEFAULT_ITERATIONS = 100

# Type-reference pass guards.
MAX_FILES_PER_PACKAGE = 200
MIN_TYPE_NAME_LENGTH = 4
MAX_CANDIDATE_NAMES = 500
PRIORITY_FILE_COUNT = 100

_IMPLICIT_PACKAGE = ""
_WORD = re.compile(r"\w+")

_WHITE, _GREY, _BLACK = 0, 1, 2

TextReader = Callable[[str], Optional[str]]


def _read_text(path: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError):
        return None


class DependencyGraph:
    """Files are vertices; an edge ``a -> b`` means ``a`` depends on ``b``.

    Vertices live in an index arena (``_paths``/``_index``) with integer
    adjacency sets, while every public method speaks in paths.
    """

    def __init__(self, read_text: TextReader | None = None) -> None:
        self._read_text = read_text or _read_text
        self._paths: List[str] = []
        self._index: Dict[str, int] = {}
        self._out: List[Set[int]] = []
        self._in: List[Set[int]] = []
        self._edges: List[Tuple[int, int]] = []
        self._scores: List[float] = []
        self._has_cycles = False
        self._cycles_stale = False
        self.logger = get_logger("graph")

    # ------------------------------------------------------------------
    # Structure

    def add_vertex(self, path: str) -> None:
        if path in self._index:
            return
        self._index[path] = len(self._paths)
        self._paths.append(path)
        self._out.append(set())
        self._in.append(set())
        self._scores = []
        self._cycles_stale = True

    def add_edge(self, source: str, target: str) -> bool:
        """Add ``source -> target``; self-loops, unknown endpoints and duplicates are ignored."""
        if source == target:
            return False
        src = self._index.get(source)
        dst = self._index.get(target)
        if src is None or dst is None or dst in self._out[src]:
            return False
        self._out[src].add(dst)
        self._in[dst].add(src)
        self._edges.append((src, dst))
        self._cycles_stale = True
        return True

    @property
    def vertices(self) -> Set[str]:
        return set(self._paths)

    @property
    def edges(self) -> List[Tuple[str, str]]:
        return [(self._paths[src], self._paths[dst]) for src, dst in self._edges]

    @property
    def page_rank_scores(self) -> Dict[str, float]:
        return dict(zip(self._paths, self._scores))

    @property
    def has_cycles(self) -> bool:
        if self._cycles_stale:
            self.detect_cycles()
        return self._has_cycles

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def out_degree(self, path: str) -> int:
        index = self._index.get(path)
        return len(self._out[index]) if index is not None else 0

    def in_degree(self, path: str) -> int:
        index = self._index.get(path)
        return len(self._in[index]) if index is not None else 0

    def successors(self, path: str) -> List[str]:
        index = self._index.get(path)
        if index is None:
            return []
        return sorted(self._paths[target] for target in self._out[index])

    def predecessors(self, path: str) -> List[str]:
        index = self._index.get(path)
        if index is None:
            return []
        return sorted(self._paths[source] for source in self._in[index])

    # ------------------------------------------------------------------
    # Build

    def build(self, parsed_files: Iterable[ParsedFile]) -> None:
        """Register every file and infer edges from references and type names."""
        started = time.perf_counter()
        files = sorted(parsed_files, key=lambda parsed: parsed.file_path)

        self.logger.debug("Registering %d vertices", len(files))
        for parsed in files:
            self.add_vertex(parsed.file_path)

        reference_edges = self._build_reference_edges(files)
        self.logger.debug(
            "Reference edges: %d (%.1fs)", reference_edges, time.perf_counter() - started
        )

        type_edges = self._build_type_reference_edges(files)
        self.logger.debug(
            "Type-reference edges: %d (%.1fs)", type_edges, time.perf_counter() - started
        )

        self.detect_cycles()
        self.logger.info(
            "Graph complete: %d nodes, %d edges (%.1fs)",
            len(self._paths),
            len(self._edges),
            time.perf_counter() - started,
        )

    def _build_reference_edges(self, files: Sequence[ParsedFile]) -> int:
        name_to_path: Dict[str, str] = {}
        for parsed in files:
            name_to_path[parsed.stem] = parsed.file_path
            if parsed.module_name:
                name_to_path[parsed.module_name] = parsed.file_path

        added = 0
        for parsed in files:
            for reference in parsed.references:
                last_segment = reference.rsplit(".", 1)[-1]
                target = name_to_path.get(reference) or name_to_path.get(last_segment)
                if target is not None and self.add_edge(parsed.file_path, target):
                    added += 1
        return added

    def _build_type_reference_edges(self, files: Sequence[ParsedFile]) -> int:
        by_package: Dict[str, List[ParsedFile]] = defaultdict(list)
        for parsed in files:
            by_package[parsed.package_name or _IMPLICIT_PACKAGE].append(parsed)

        added = 0
        for package_name in sorted(by_package):
            package_files = by_package[package_name]
            display_name = package_name or "(ungrouped)"
            if len(package_files) > 20:
                self.logger.debug("%s: %d files", display_name, len(package_files))
            added += self._link_package(package_files)
        return added

    def _link_package(self, package_files: Sequence[ParsedFile]) -> int:
        by_size = sorted(package_files, key=lambda parsed: (-parsed.line_count, parsed.file_path))
        if len(by_size) > MAX_FILES_PER_PACKAGE:
            considered = by_size[:MAX_FILES_PER_PACKAGE]
        else:
            considered = list(package_files)

        candidates = _candidate_names(considered)
        if len(candidates) > MAX_CANDIDATE_NAMES:
            priority = {parsed.file_path for parsed in by_size[:PRIORITY_FILE_COUNT]}
            candidates = [(name, path) for name, path in candidates if path in priority]
        if not candidates:
            return 0

        declared_by: Dict[str, List[str]] = defaultdict(list)
        for name, path in candidates:
            declared_by[name].append(path)

        added = 0
        for parsed in considered:
            content = self._read_text(parsed.file_path)
            if content is None:
                continue
            # Whole \w+ tokens are exactly the word-boundary matches of an identifier.
            words = set(_WORD.findall(content))
            for name in sorted(words.intersection(declared_by)):
                for declaring_path in declared_by[name]:
                    if declaring_path == parsed.file_path:
                        continue
                    if self.add_edge(parsed.file_path, declaring_path):
                        added += 1
        return added

    # ------------------------------------------------------------------
    # Analysis

    def analyze(
        self, damping: float = DEFAULT_DAMPING, iterations: int = DEFAULT_ITERATIONS
    ) -> None:
        self.compute_page_rank(damping=damping, iterations=iterations)
        if self._cycles_stale:
            self.detect_cycles()

    def compute_page_rank(
        self, damping: float = DEFAULT_DAMPING, iterations: int = DEFAULT_ITERATIONS
    ) -> Dict[str, float]:
        """Fixed-iteration PageRank; mass held by vertices without out-edges is dropped."""
        count = len(self._paths)
        if count == 0:
            self._scores = []
            return {}

        order = sorted(range(count), key=self._paths.__getitem__)
        outgoing = [sorted(self._out[index], key=self._paths.__getitem__) for index in range(count)]
        base = (1.0 - damping) / count
        scores = [1.0 / count] * count

        for _ in range(iterations):
            updated = [base] * count
            for vertex in order:
                neighbours = outgoing[vertex]
                if not neighbours:
                    continue
                share = damping * scores[vertex] / len(neighbours)
                for neighbour in neighbours:
                    updated[neighbour] += share
            scores = updated

        self._scores = scores
        return self.page_rank_scores

    def detect_cycles(self) -> bool:
        """Three-colour DFS; a grey successor is a back edge and therefore a cycle."""
        colour = [_WHITE] * len(self._paths)
        found = False
        for root in range(len(self._paths)):
            if colour[root] != _WHITE:
                continue
            colour[root] = _GREY
            stack = [(root, iter(self._out[root]))]
            while stack and not found:
                vertex, successors = stack[-1]
                advanced = False
                for successor in successors:
                    if colour[successor] == _GREY:
                        found = True
                        break
                    if colour[successor] == _WHITE:
                        colour[successor] = _GREY
                        stack.append((successor, iter(self._out[successor])))
                        advanced = True
                        break
                if not advanced and not found:
                    colour[vertex] = _BLACK
                    stack.pop()
            if found:
                break

        self._has_cycles = found
        self._cycles_stale = False
        if found:
            self.logger.warning("Circular dependencies detected in the codebase.")
        return found

    def topological_sort(self) -> Optional[List[str]]:
        """Kahn's algorithm with lexicographic tie-breaking; None for cyclic graphs."""
        if self.has_cycles:
            return None
        remaining = [len(self._in[index]) for index in range(len(self._paths))]
        heap = [self._paths[index] for index, degree in enumerate(remaining) if degree == 0]
        heapq.heapify(heap)

        ordered: List[str] = []
        while heap:
            path = heapq.heappop(heap)
            ordered.append(path)
            for successor in self._out[self._index[path]]:
                remaining[successor] -= 1
                if remaining[successor] == 0:
                    heapq.heappush(heap, self._paths[successor])

        if len(ordered) != len(self._paths):
            return None
        return ordered

    def get_top_hotspots(self, limit: int = 15) -> List[Hotspot]:
        if not self._scores and self._paths:
            self.compute_page_rank()
        ranked = sorted(
            zip(self._paths, self._scores), key=lambda item: (-item[1], item[0])
        )
        return [Hotspot(path=path, score=score) for path, score in ranked[: max(limit, 0)]]


def _candidate_names(files: Sequence[ParsedFile]) -> List[Tuple[str, str]]:
    candidates: List[Tuple[str, str]] = []
    for parsed in files:
        for declaration in parsed.declarations:
            if declaration.kind is DeclarationKind.EXTENSION:
                continue
            if len(declaration.name) < MIN_TYPE_NAME_LENGTH:
                continue
            candidates.append((declaration.name, parsed.file_path))
    return candidates


__all__ = ["DependencyGraph"]
