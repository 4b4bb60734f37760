"""Concurrent parsing of scanned files, backed by the parse cache."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import ParseError
from .logging import get_logger
from .models import ParsedFile
from .parsers import ParserRegistry, default_registry
from .stores import ParseCache, cache_key

_PROGRESS_EVERY = 100


def chunk_size_for(total: int) -> int:
    """Scale chunk size with the batch to bound in-flight work."""
    if total < 100:
        return max(total, 1)
    if total < 500:
        return 50
    return 100


def chunked(items: Sequence[Path], size: int) -> Iterable[Sequence[Path]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class _ProgressCounter:
    def __init__(self, total: int, logger: logging.Logger) -> None:
        self._total = total
        self._value = 0
        self._lock = threading.Lock()
        self._logger = logger

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            value = self._value
        if value % _PROGRESS_EVERY == 0:
            self._logger.info("Progress: %d/%d files", value, self._total)
        return value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ParallelParser:
    """Parses files chunk by chunk; files inside a chunk are parsed concurrently."""

    def __init__(
        self,
        cache: ParseCache | None = None,
        *,
        registry: ParserRegistry | None = None,
        max_workers: int | None = None,
        chunk_size: int | None = None,
    ) -> None:
        self.cache = cache
        self.registry = registry or default_registry()
        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.logger = get_logger("pipeline")

    def parse_files(self, files: Iterable[Path]) -> List[ParsedFile]:
        """Return a record for every file that parsed; order is not significant."""
        ordered = sorted(set(files))
        total = len(ordered)
        if total == 0:
            return []

        size = self.chunk_size if self.chunk_size and self.chunk_size > 0 else chunk_size_for(total)
        self.logger.info("Parsing %d files (chunk size: %d)", total, size)
        counter = _ProgressCounter(total, self.logger)

        results: List[ParsedFile] = []
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="codecontext-parse"
        ) as executor:
            for chunk in chunked(ordered, size):
                futures = [executor.submit(self._parse_one, path, counter) for path in chunk]
                # Every unit of a chunk finishes before the next chunk is submitted.
                wait(futures)
                for future in futures:
                    parsed = future.result()
                    if parsed is not None:
                        results.append(parsed)

        failed = total - len(results)
        if failed:
            self.logger.warning("%d files failed to parse", failed)
        return results

    def _parse_one(self, path: Path, counter: _ProgressCounter) -> Optional[ParsedFile]:
        try:
            parsed = self._load_or_parse(path)
        except ParseError as exc:
            self.logger.warning("Failed to parse %s: %s", path.name, exc.reason)
            return None
        except Exception as exc:  # pragma: no cover - parser bug
            self._log_exception(f"Unexpected error while parsing {path.name}", exc)
            return None
        if parsed is not None:
            counter.increment()
        return parsed

    def _load_or_parse(self, path: Path) -> Optional[ParsedFile]:
        if self.cache is not None:
            cached = self.cache.get(path)
            if cached is not None:
                return cached

        parser = self.registry.parser_for(path)
        if parser is None:
            self.logger.warning("No parser registered for %s", path.name)
            return None

        if self.cache is None:
            return parser.parse(path)

        # Key the entry on the metadata seen before the read.
        try:
            key = cache_key(path)
        except OSError:
            key = None
        parsed = parser.parse(path)
        if key is not None:
            self.cache.put(path, parsed, key=key)
        return parsed

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.warning("%s: %s", message, exc)


__all__ = ["ParallelParser", "chunk_size_for", "chunked"]
