"""Language parsers and the extension-keyed registry that selects them."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, Set

from .base import LanguageParser
from .modules import ModuleDetector
from .objc import ObjCParser
from .swift import SwiftParser

_ENTRY_POINT_GROUP = "codecontext.parsers"

# Shared by every built-in parser so module roots are probed once per run.
DEFAULT_MODULE_DETECTOR = ModuleDetector()

_BUILTIN_FACTORIES: dict[str, Callable[[ModuleDetector], LanguageParser]] = {
    "swift": SwiftParser,
    "h": ObjCParser,
    "m": ObjCParser,
    "mm": ObjCParser,
}


class ParserRegistry:
    """Maps lower-cased file extensions (without the dot) to parser instances."""

    def __init__(self, parsers: Mapping[str, LanguageParser]) -> None:
        self._parsers: Dict[str, LanguageParser] = {
            _normalise(extension): parser for extension, parser in parsers.items()
        }

    def parser_for(self, path: Path) -> Optional[LanguageParser]:
        return self._parsers.get(_normalise(path.suffix))

    def register(self, extension: str, parser: LanguageParser) -> None:
        if not isinstance(parser, LanguageParser):
            raise TypeError(f"Parser for '{extension}' must be a LanguageParser instance")
        self._parsers[_normalise(extension)] = parser

    @property
    def extensions(self) -> Set[str]:
        return set(self._parsers)


def build_registry(
    modules: ModuleDetector | None = None, *, load_plugins: bool = True
) -> ParserRegistry:
    """Return a registry with the built-in parsers plus any installed plugins."""
    detector = modules or DEFAULT_MODULE_DETECTOR
    instances: Dict[Callable[[ModuleDetector], LanguageParser], LanguageParser] = {}
    parsers: Dict[str, LanguageParser] = {}
    for extension, factory in _BUILTIN_FACTORIES.items():
        # One instance per parser class, shared across its extensions.
        if factory not in instances:
            instances[factory] = factory(detector)
        parsers[extension] = instances[factory]

    registry = ParserRegistry(parsers)
    if load_plugins:
        for entry in _iter_entry_points():
            try:
                loaded = entry.load()
            except Exception as exc:  # pragma: no cover - broken plugin
                raise RuntimeError(f"Failed to load parser entry point '{entry.name}': {exc}") from exc
            registry.register(entry.name, _coerce_parser(loaded, detector))
    return registry


_DEFAULT_REGISTRY: ParserRegistry | None = None


def default_registry() -> ParserRegistry:
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_registry()
    return _DEFAULT_REGISTRY


def parser_for(path: Path) -> Optional[LanguageParser]:
    """Return the parser registered for ``path``'s extension, if any."""
    return default_registry().parser_for(path)


def supported_extensions() -> Set[str]:
    return default_registry().extensions


def _normalise(extension: str) -> str:
    return extension.strip().lower().lstrip(".")


def _coerce_parser(obj: object, modules: ModuleDetector) -> LanguageParser:
    if isinstance(obj, LanguageParser):
        return obj
    if isinstance(obj, type) and issubclass(obj, LanguageParser):
        return obj(modules)  # type: ignore[call-arg]
    if callable(obj):
        instance = obj(modules)
        if isinstance(instance, LanguageParser):
            return instance
    raise TypeError("Parser entry point must be a LanguageParser subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - unreadable metadata
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "DEFAULT_MODULE_DETECTOR",
    "LanguageParser",
    "ObjCParser",
    "ParserRegistry",
    "SwiftParser",
    "build_registry",
    "default_registry",
    "parser_for",
    "supported_extensions",
]
