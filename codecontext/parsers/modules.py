"""Module and package inference from directory conventions."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Sequence, Tuple

from ..models import BuildSystem

SOURCES_MARKER = "Sources"
PACKAGES_MARKER = "Packages"

# Checked in order inside each candidate directory.
_MANIFESTS: Tuple[Tuple[str, BuildSystem], ...] = (
    ("Package.swift", BuildSystem.SPM),
    ("BUILD", BuildSystem.BAZEL),
    ("BUILD.bazel", BuildSystem.BAZEL),
    ("Project.swift", BuildSystem.TUIST),
)

_MAX_MANIFEST_DEPTH = 3

ModuleInfo = Tuple[str, BuildSystem]


def module_name_for(path: Path) -> str:
    """Return the directory segment right below the nearest ``Sources`` directory."""
    parts = path.parts
    for index in range(len(parts) - 2, -1, -1):
        if parts[index] == SOURCES_MARKER:
            # parts[-1] is the file itself, so a module needs a directory in between.
            if index + 1 < len(parts) - 1:
                return parts[index + 1]
            return ""
    return ""


class ModuleDetector:
    """Resolves (package name, build system) per module root with a shared memo.

    Concurrent lookups of the same root may both probe the filesystem; the
    result is deterministic so whichever write lands last is equivalent.
    """

    def __init__(self) -> None:
        self._cache: Dict[str, ModuleInfo] = {}
        self._lock = threading.Lock()

    def detect(self, path: Path) -> ModuleInfo:
        parts = path.parts
        if PACKAGES_MARKER in parts:
            index = parts.index(PACKAGES_MARKER)
            if index + 1 < len(parts) - 1:
                return parts[index + 1], BuildSystem.SPM

        module_root = _module_root(parts)
        if module_root is None:
            return "", BuildSystem.UNKNOWN

        key = str(module_root)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = _probe_manifests(module_root)
        with self._lock:
            self._cache[key] = result
        return result

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def _module_root(parts: Sequence[str]) -> Path | None:
    for index in range(len(parts) - 2, 0, -1):
        if parts[index] == SOURCES_MARKER:
            if index <= 1:
                return None
            return Path(*parts[:index])
    return None


def _probe_manifests(module_root: Path) -> ModuleInfo:
    candidate = module_root
    for _ in range(_MAX_MANIFEST_DEPTH):
        for manifest, build_system in _MANIFESTS:
            if (candidate / manifest).is_file():
                return candidate.name, build_system
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return "", BuildSystem.UNKNOWN


__all__ = ["ModuleDetector", "module_name_for"]
