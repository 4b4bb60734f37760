"""Repository scanning: discover the source files to analyse."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Set

from .errors import PathError
from .logging import get_logger

_logger = get_logger("scanner")


def _normalise_extensions(extensions: Iterable[str]) -> Set[str]:
    normalised: Set[str] = set()
    for extension in extensions:
        cleaned = extension.strip().lower().lstrip(".")
        if cleaned:
            normalised.add(cleaned)
    return normalised


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


class RepoScanner:
    """Walks a directory tree and returns allow-listed source files."""

    def __init__(self, extensions: Iterable[str], exclude_paths: Iterable[str] = ()) -> None:
        self.extensions = _normalise_extensions(extensions)
        self.exclude_paths = {segment.strip("/") for segment in exclude_paths if segment.strip("/")}

    def scan(self, root: str | Path) -> Set[Path]:
        """Return absolute paths of matching files under ``root``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise PathError(f"Path does not exist: {root}")
        if not root_path.is_dir():
            raise PathError(f"Path is not a directory: {root}")

        files = set(self._iter_files(root_path))
        _logger.debug("Scanner found %d files under %s", len(files), root_path)
        return files

    def _iter_files(self, root: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            # Pruning dirnames in place stops os.walk from descending.
            dirnames[:] = [
                name
                for name in dirnames
                if not _is_hidden(name) and name not in self.exclude_paths
            ]

            for filename in filenames:
                if _is_hidden(filename) or filename in self.exclude_paths:
                    continue
                suffix = Path(filename).suffix.lower().lstrip(".")
                if suffix not in self.extensions:
                    continue
                path = current_dir / filename
                if not path.is_file():
                    continue
                yield path


__all__ = ["RepoScanner"]
