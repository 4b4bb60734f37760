"""Per-file and repository-wide history facts from the ``git`` CLI."""

from __future__ import annotations

import dataclasses
import subprocess
from collections import Counter
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..errors import CollaboratorUnavailable
from ..logging import get_logger
from ..models import AuthorStats, GitMetadata, ParsedFile

_PER_FILE_COMMIT_CAP = 50
_TOP_AUTHORS = 3
_RECENT_MESSAGES = 3
_PROGRESS_EVERY = 50


class GitHistoryAnalyzer:
    """Enriches parsed files with git metadata; every failure is a no-op."""

    def __init__(
        self,
        repo_path: str | Path,
        *,
        commit_limit: int = 1000,
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).expanduser().resolve()
        self.commit_limit = commit_limit
        self._runner = runner or run_git
        self.logger = get_logger("git")

    def is_available(self) -> bool:
        return (self.repo_path / ".git").exists()

    def current_branch(self) -> str:
        try:
            output = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
        except CollaboratorUnavailable as exc:
            self.logger.debug("Branch lookup skipped: %s", exc)
            return "unknown"
        return output.strip() or "unknown"

    def author_stats(self) -> Dict[str, AuthorStats]:
        """Commit counts and first/last activity per author over recent history."""
        try:
            output = self._git(["log", "--pretty=format:%an\t%at", f"-{self.commit_limit}"])
        except CollaboratorUnavailable as exc:
            self.logger.debug("Author statistics skipped: %s", exc)
            return {}

        stats: Dict[str, AuthorStats] = {}
        for line in output.splitlines():
            parts = line.split("\t")
            if len(parts) < 2:
                continue
            author = parts[0]
            timestamp = _as_timestamp(parts[1])
            if timestamp <= 0:
                continue
            entry = stats.setdefault(author, AuthorStats())
            entry.total_commits += 1
            if entry.first_commit_date == 0 or timestamp < entry.first_commit_date:
                entry.first_commit_date = timestamp
            if timestamp > entry.last_commit_date:
                entry.last_commit_date = timestamp
        return stats

    def enrich(self, files: Sequence[ParsedFile]) -> List[ParsedFile]:
        """Return copies of ``files`` with ``git_metadata`` filled in where history exists."""
        if not self.is_available():
            self.logger.info("No .git directory found. Skipping Git analysis.")
            return list(files)

        total = len(files)
        self.logger.info("Analyzing git history for %d files", total)
        enriched: List[ParsedFile] = []
        for position, parsed in enumerate(files, start=1):
            if position % _PROGRESS_EVERY == 0 or position == total:
                self.logger.debug("Git progress: %d/%d files", position, total)
            try:
                metadata = self._file_metadata(self._relative_path(parsed.file_path))
            except CollaboratorUnavailable as exc:
                self.logger.warning("Git history unavailable, skipping enrichment: %s", exc)
                return list(files)
            if metadata is None:
                enriched.append(parsed)
            else:
                enriched.append(dataclasses.replace(parsed, git_metadata=metadata))
        return enriched

    # ------------------------------------------------------------------
    # Internals

    def _file_metadata(self, relative_path: str) -> Optional[GitMetadata]:
        try:
            output = self._git(
                [
                    "log",
                    "--pretty=format:%an\t%at\t%s",
                    "--follow",
                    f"-{min(self.commit_limit, _PER_FILE_COMMIT_CAP)}",
                    "--",
                    relative_path,
                ]
            )
        except subprocess.CalledProcessError:
            return None

        authors: Counter[str] = Counter()
        last_modified = 0.0
        first_commit: Optional[float] = None
        messages: List[str] = []
        commits = 0

        for line in output.splitlines():
            parts = line.split("\t", 2)
            if len(parts) < 3:
                continue
            author, raw_timestamp, message = parts
            timestamp = _as_timestamp(raw_timestamp)
            commits += 1
            authors[author] += 1
            last_modified = max(last_modified, timestamp)
            first_commit = timestamp if first_commit is None else min(first_commit, timestamp)
            if len(messages) < _RECENT_MESSAGES:
                messages.append(message)

        if commits == 0:
            return None
        return GitMetadata(
            last_modified=last_modified,
            change_frequency=commits,
            top_authors=[author for author, _ in authors.most_common(_TOP_AUTHORS)],
            recent_messages=messages,
            first_commit_date=first_commit or 0.0,
        )

    def _relative_path(self, absolute_path: str) -> str:
        path = Path(absolute_path)
        try:
            return path.relative_to(self.repo_path).as_posix()
        except ValueError:
            return path.as_posix()

    def _git(self, args: Iterable[str]) -> str:
        """Run git; a missing binary or repository raises CollaboratorUnavailable.

        Per-file callers may still see ``CalledProcessError`` for a single path.
        """
        if not self.is_available():
            raise CollaboratorUnavailable(f"{self.repo_path} is not a Git repository")
        command = ["git", *args]
        try:
            return self._runner(command, cwd=self.repo_path, capture_output=True)
        except FileNotFoundError as exc:
            raise CollaboratorUnavailable("git executable not found") from exc
        except subprocess.CalledProcessError as exc:
            if command[1] == "log" and "--follow" in command:
                raise
            raise CollaboratorUnavailable(f"git {command[1]} failed: {exc}") from exc


def run_git(
    args: Iterable[str],
    *,
    cwd: Path,
    capture_output: bool = False,
) -> str:
    """Default runner: ``subprocess.run`` with ``check=True``, returning stdout."""
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        check=True,
        text=True,
        capture_output=capture_output,
        errors="replace",
    )
    return completed.stdout if capture_output else ""


def merge_author_touches(
    stats: Dict[str, AuthorStats], files: Iterable[ParsedFile]
) -> Dict[str, AuthorStats]:
    """Count, per author, the files where they are a top contributor."""
    merged = {author: dataclasses.replace(entry) for author, entry in stats.items()}
    for parsed in files:
        for author in parsed.git_metadata.top_authors:
            merged.setdefault(author, AuthorStats()).files_modified += 1
    return merged


def _as_timestamp(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


__all__ = ["GitHistoryAnalyzer", "merge_author_touches", "run_git"]
