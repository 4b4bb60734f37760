"""Exception hierarchy for codecontext runs."""

from __future__ import annotations


class CodeContextError(Exception):
    """Base class for errors raised by codecontext."""


class PreconditionError(CodeContextError):
    """Raised before parsing starts when a run cannot proceed."""


class PathError(PreconditionError):
    """Raised when the analysis root is missing or not a directory."""


class ParseError(CodeContextError):
    """Raised when a single source file cannot be read as text."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason


class CacheError(CodeContextError):
    """Raised when a cache entry is unreadable or cannot be decoded."""


class CollaboratorUnavailable(CodeContextError):
    """Raised when an optional collaborator (git history) cannot be used."""


__all__ = [
    "CacheError",
    "CodeContextError",
    "CollaboratorUnavailable",
    "ParseError",
    "PathError",
    "PreconditionError",
]
