"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping, Set

from codecontext.repo_scanner import RepoScanner


class RepoBuilder:
    """Utility for writing files into a throwaway repository and rescanning it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = RepoScanner(["swift", "h", "m", "mm"])

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def scan(self) -> Set[Path]:
        """Return the source files currently in the repository."""
        return self._scanner.scan(self.root)

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root.resolve()


__all__ = ["RepoBuilder"]
