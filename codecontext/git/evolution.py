"""Codebase growth over time, sampled from git history without a checkout."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from ..errors import CollaboratorUnavailable
from ..logging import get_logger
from ..models import CodebaseSnapshot
from .history import run_git

_SECONDS_PER_DAY = 86400
_DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class _CommitRef:
    commit_hash: str
    timestamp: float


class EvolutionAnalyzer:
    """Samples commits at a fixed interval and totals matching files and lines at each."""

    def __init__(
        self,
        repo_path: str | Path,
        *,
        file_extensions: Iterable[str] = ("swift",),
        exclude_paths: Iterable[str] = (),
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).expanduser().resolve()
        self.file_extensions = {ext.strip().lower().lstrip(".") for ext in file_extensions}
        self.exclude_paths = {segment.strip("/") for segment in exclude_paths if segment.strip("/")}
        self._runner = runner or run_git
        self.logger = get_logger("evolution")

    def analyze(self, months: int = 6, interval_days: int = 30) -> List[CodebaseSnapshot]:
        """Return snapshots oldest first; empty when there is no usable history."""
        if months < 1 or interval_days < 1:
            raise ValueError("months and interval_days must be positive")
        try:
            commits = self._sample_commits(months, interval_days)
        except CollaboratorUnavailable as exc:
            self.logger.info("Evolution analysis skipped: %s", exc)
            return []
        if not commits:
            self.logger.info("No commits found in history.")
            return []

        self.logger.info("Analyzing evolution across %d snapshots", len(commits))
        snapshots: List[CodebaseSnapshot] = []
        for position, commit in enumerate(commits, start=1):
            self.logger.debug(
                "[%d/%d] Snapshot at %s", position, len(commits), commit.commit_hash[:7]
            )
            snapshot = self._snapshot(commit)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def _sample_commits(self, months: int, interval_days: int) -> List[_CommitRef]:
        """Pick the commit closest to each interval step back from the newest commit."""
        output = self._git(["log", "--pretty=format:%H %at", "--reverse"])
        history: List[_CommitRef] = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) != 2:
                continue
            try:
                history.append(_CommitRef(parts[0], float(parts[1])))
            except ValueError:
                continue
        if not history:
            return []

        newest = history[-1].timestamp
        cutoff = newest - months * _DAYS_PER_MONTH * _SECONDS_PER_DAY
        step = interval_days * _SECONDS_PER_DAY

        sampled: Dict[str, _CommitRef] = {}
        target = newest
        while target > cutoff:
            # min() keeps the earliest commit on ties.
            closest = min(history, key=lambda commit: abs(commit.timestamp - target))
            sampled.setdefault(closest.commit_hash, closest)
            target -= step
        return sorted(sampled.values(), key=lambda commit: commit.timestamp)

    # ------------------------------------------------------------------
    # Internals

    def _snapshot(self, commit: _CommitRef) -> Optional[CodebaseSnapshot]:
        try:
            listing = self._git(["ls-tree", "-r", "--name-only", commit.commit_hash])
        except CollaboratorUnavailable as exc:
            self.logger.debug("Skipping snapshot %s: %s", commit.commit_hash[:7], exc)
            return None
        files = {line for line in listing.splitlines() if self._matches(line)}
        return CodebaseSnapshot(
            timestamp=commit.timestamp,
            commit_hash=commit.commit_hash,
            total_files=len(files),
            total_lines=self._count_lines(commit.commit_hash, files),
        )

    def _count_lines(self, commit_hash: str, files: Set[str]) -> int:
        if not files:
            return 0
        try:
            # Every line matches the empty pattern; binary blobs are skipped.
            output = self._git(["grep", "-I", "-c", "-e", "", commit_hash])
        except CollaboratorUnavailable as exc:
            # git grep exits 1 when nothing matched.
            self.logger.debug("Line count for %s unavailable: %s", commit_hash[:7], exc)
            return 0

        prefix = f"{commit_hash}:"
        total = 0
        for line in output.splitlines():
            if not line.startswith(prefix):
                continue
            path, _, count = line[len(prefix) :].rpartition(":")
            if path in files and count.isdigit():
                total += int(count)
        return total

    def _matches(self, relative_path: str) -> bool:
        path = PurePosixPath(relative_path)
        if path.suffix.lower().lstrip(".") not in self.file_extensions:
            return False
        return not any(part in self.exclude_paths for part in path.parts[:-1])

    def _git(self, args: Sequence[str]) -> str:
        if not (self.repo_path / ".git").exists():
            raise CollaboratorUnavailable(f"{self.repo_path} is not a Git repository")
        command = ["git", *args]
        try:
            return self._runner(command, cwd=self.repo_path, capture_output=True)
        except FileNotFoundError as exc:
            raise CollaboratorUnavailable("git executable not found") from exc
        except subprocess.CalledProcessError as exc:
            raise CollaboratorUnavailable(f"git {command[1]} failed: {exc}") from exc


def net_growth(snapshots: Sequence[CodebaseSnapshot]) -> Optional[float]:
    """Percent change in file count from the first snapshot to the last."""
    if not snapshots or snapshots[0].total_files == 0:
        return None
    first, last = snapshots[0], snapshots[-1]
    return (last.total_files - first.total_files) / first.total_files * 100


__all__ = ["EvolutionAnalyzer", "net_growth"]
