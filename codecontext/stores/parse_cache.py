"""Content-addressed, per-file cache of parse results."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
import hashlib
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from ..errors import CacheError
from ..logging import get_logger
from ..models import (
    BuildSystem,
    Declaration,
    DeclarationKind,
    FunctionInfo,
    GitMetadata,
    ParsedFile,
)

_CACHE_VERSION = 1
_ENTRY_SUFFIX = ".json"
_TEMP_SUFFIX = ".tmp"

_logger = get_logger("cache")


def cache_key(path: Path) -> str:
    """Hex digest of ``path:mtime_ns:size``; raises OSError when ``path`` cannot be stat'ed."""
    stat_result = path.stat()
    metadata = f"{path}:{stat_result.st_mtime_ns}:{stat_result.st_size}"
    return hashlib.sha256(metadata.encode("utf-8")).hexdigest()


class ParseCache:
    """Stores one JSON entry per source file, keyed by its stat metadata.

    Entries are written to a sibling temp file and renamed into place, so a
    reader never sees a partially written entry. Every failure degrades to a
    cache miss.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def get(self, path: Path) -> Optional[ParsedFile]:
        try:
            key = cache_key(path)
        except OSError:
            return None
        entry = self._entry_path(key)
        try:
            entry_mtime = entry.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as exc:
            _logger.debug("Cache entry for %s is not accessible: %s", path, exc)
            return None

        try:
            source_mtime = path.stat().st_mtime_ns
        except OSError:
            return None
        if source_mtime > entry_mtime:
            _logger.debug("Cache entry for %s is stale", path)
            self._evict(entry)
            return None

        try:
            return self._decode(entry)
        except CacheError as exc:
            _logger.debug("Evicting unreadable cache entry for %s: %s", path, exc)
            self._evict(entry)
            return None

    def put(self, path: Path, parsed: ParsedFile, *, key: str | None = None) -> None:
        """Store ``parsed`` for ``path``.

        Pass the ``key`` taken before ``path`` was read; otherwise an edit made
        while parsing would file the old result under the new metadata.
        """
        if key is None:
            try:
                key = cache_key(path)
            except OSError as exc:
                _logger.debug("Skipping cache write for %s: %s", path, exc)
                return
        entry = self._entry_path(key)
        temp = entry.with_name(entry.name + _TEMP_SUFFIX)
        payload = {
            "version": _CACHE_VERSION,
            "stored_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "file": _parsed_file_to_dict(parsed),
        }
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            temp.write_text(json.dumps(payload, sort_keys=True), encoding="utf-8")
            os.replace(temp, entry)
        except (OSError, TypeError, ValueError) as exc:
            _logger.debug("Failed to cache %s: %s", path.name, exc)
            self._evict(temp)

    def clear(self) -> None:
        for entry in self._iter_entries(include_temp=True):
            self._evict(entry)

    def prune(self, live_paths: Iterable[Path]) -> int:
        """Delete entries that no longer belong to any of ``live_paths``."""
        keep: Set[str] = set()
        for path in live_paths:
            try:
                keep.add(cache_key(path))
            except OSError:
                continue
        removed = 0
        for entry in self._iter_entries(include_temp=False):
            if entry.name[: -len(_ENTRY_SUFFIX)] not in keep:
                self._evict(entry)
                removed += 1
        if removed:
            _logger.debug("Pruned %d stale cache entries", removed)
        return removed

    # ------------------------------------------------------------------
    # Internal helpers

    def _entry_path(self, key: str) -> Path:
        return self.directory / f"{key}{_ENTRY_SUFFIX}"

    def _iter_entries(self, *, include_temp: bool) -> List[Path]:
        try:
            children = list(self.directory.iterdir())
        except OSError:
            return []
        entries = []
        for child in children:
            if child.name.endswith(_ENTRY_SUFFIX):
                entries.append(child)
            elif include_temp and child.name.endswith(_ENTRY_SUFFIX + _TEMP_SUFFIX):
                entries.append(child)
        return entries

    @staticmethod
    def _decode(entry: Path) -> ParsedFile:
        try:
            data = json.loads(entry.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CacheError(str(exc)) from exc
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            raise CacheError("unsupported cache entry version")
        return _parsed_file_from_dict(data.get("file"))

    @staticmethod
    def _evict(entry: Path) -> None:
        try:
            entry.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            _logger.debug("Could not remove cache file %s: %s", entry, exc)


def _parsed_file_to_dict(parsed: ParsedFile) -> Dict[str, Any]:
    data = asdict(parsed)
    data["build_system"] = parsed.build_system.value
    data["declarations"] = [
        {"name": declaration.name, "kind": declaration.kind.value}
        for declaration in parsed.declarations
    ]
    return data


def _parsed_file_from_dict(payload: object) -> ParsedFile:
    if not isinstance(payload, dict):
        raise CacheError("cache entry does not contain a parsed file")
    try:
        declarations = [
            Declaration(name=_require_str(item["name"]), kind=DeclarationKind(item["kind"]))
            for item in payload.get("declarations", [])
        ]
        function_payload = payload.get("longest_function")
        longest_function = None
        if function_payload is not None:
            longest_function = FunctionInfo(
                name=_require_str(function_payload["name"]),
                line_count=int(function_payload["line_count"]),
                file_path=_require_str(function_payload["file_path"]),
            )
        git_payload = payload.get("git_metadata") or {}
        git_metadata = GitMetadata(
            last_modified=float(git_payload.get("last_modified", 0.0)),
            change_frequency=int(git_payload.get("change_frequency", 0)),
            top_authors=[str(author) for author in git_payload.get("top_authors", [])],
            recent_messages=[str(message) for message in git_payload.get("recent_messages", [])],
            first_commit_date=float(git_payload.get("first_commit_date", 0.0)),
        )
        return ParsedFile(
            file_path=_require_str(payload["file_path"]),
            module_name=_require_str(payload.get("module_name", "")),
            package_name=_require_str(payload.get("package_name", "")),
            references=[_require_str(reference) for reference in payload.get("references", [])],
            declarations=declarations,
            description=_require_str(payload.get("description", "")),
            line_count=int(payload.get("line_count", 0)),
            todo_count=int(payload.get("todo_count", 0)),
            fixme_count=int(payload.get("fixme_count", 0)),
            longest_function=longest_function,
            build_system=BuildSystem(payload.get("build_system", BuildSystem.UNKNOWN.value)),
            git_metadata=git_metadata,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CacheError(f"malformed cache entry: {exc}") from exc


def _require_str(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


__all__ = ["ParseCache", "cache_key"]
