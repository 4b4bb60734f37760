"""Version-control enrichment."""

from .evolution import EvolutionAnalyzer, net_growth
from .history import GitHistoryAnalyzer, merge_author_touches, run_git

__all__ = [
    "EvolutionAnalyzer",
    "GitHistoryAnalyzer",
    "merge_author_touches",
    "net_growth",
    "run_git",
]
