"""Suggested reading order derived from the dependency graph."""

from __future__ import annotations

from typing import List, Optional

from .graph import DependencyGraph
from .logging import get_logger
from .models import LearningStep

FUNDAMENTAL = "Fundamental"
ENTRY_POINT = "Entry Point"
CORE_LOGIC = "Core Logic"
CYCLE_CONTEXT = "Cycle Context"

_REASONS = {
    FUNDAMENTAL: "This file stands alone. Start here to understand basic blocks.",
    ENTRY_POINT: "This is a high-level orchestrator. Read this last to see how everything fits.",
    CORE_LOGIC: "Connects different parts of the system.",
    CYCLE_CONTEXT: "Part of a circular dependency.",
}


class LearningPathGenerator:
    """Orders files so that dependencies are read before their dependents."""

    def __init__(self) -> None:
        self.logger = get_logger("learning_path")

    def generate(self, graph: DependencyGraph, limit: Optional[int] = None) -> List[LearningStep]:
        ordered = graph.topological_sort()
        if ordered is None:
            self.logger.debug("Graph is cyclic; ordering learning path by out-degree")
            steps = [
                LearningStep(file=path, category=CYCLE_CONTEXT, reason=_REASONS[CYCLE_CONTEXT])
                for path in sorted(graph.vertices, key=lambda path: (graph.out_degree(path), path))
            ]
        else:
            # Kahn order puts dependents first; reading wants the reverse.
            steps = [self._step(graph, path) for path in reversed(ordered)]

        if limit is not None and limit >= 0:
            steps = steps[:limit]
        return steps

    @staticmethod
    def _step(graph: DependencyGraph, path: str) -> LearningStep:
        if graph.out_degree(path) == 0:
            category = FUNDAMENTAL
        elif graph.in_degree(path) == 0:
            category = ENTRY_POINT
        else:
            category = CORE_LOGIC
        return LearningStep(file=path, category=category, reason=_REASONS[category])


__all__ = ["LearningPathGenerator"]
