"""Base classes for language parsers."""

from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import ParseError
from ..models import ParsedFile


class LanguageParser(ABC):
    """Contract for parsers that extract structural facts from one file."""

    @abstractmethod
    def parse(self, path: Path) -> ParsedFile:
        """Return the parsed record for ``path``; raise ParseError if unreadable."""

    @staticmethod
    def read_source(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(str(path), str(exc)) from exc
