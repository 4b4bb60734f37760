"""Swift source parser."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from .base import LanguageParser
from .modules import ModuleDetector, module_name_for
from .utils import (
    count_debt_markers,
    count_lines,
    extract_description,
    find_longest_function,
)
from ..models import Declaration, DeclarationKind, ParsedFile

_IMPORT = re.compile(
    r"^[ \t]*(?:@\w+[ \t]+)*import[ \t]+"
    r"(?:(?:struct|class|enum|protocol|func|var|let|typealias)[ \t]+)?"
    r"(\w[\w.]*)",
    re.MULTILINE,
)

_DECLARATION = re.compile(
    r"^[ \t]*(?:@\w+(?:\([^)\n]*\))?\s+)*"
    r"(?:(?:public|internal|private|fileprivate|open|package)[ \t]+)?"
    r"(?:(?:final|indirect)[ \t]+)?(?:nonisolated[ \t]+)?"
    r"(class|struct|enum|protocol|actor|extension)[ \t]+(\w+)",
    re.MULTILINE,
)

# `class func`, `class var` and friends look like declarations to the pattern above.
_DENIED_NAMES = frozenset(
    {
        "func",
        "var",
        "let",
        "case",
        "init",
        "deinit",
        "subscript",
        "static",
        "override",
        "typealias",
        "where",
    }
)

_FUNCTION = re.compile(
    r"^\s*(?:@\w+(?:\([^)]*\))?\s+)*"
    r"(?:(?:public|internal|private|fileprivate|open|package|static|class|final|override"
    r"|mutating|nonmutating|nonisolated|convenience|required|dynamic|optional|indirect)"
    r"(?:\([^)]*\))?\s+)*"
    r"(?:func\s+([^\s(<]+)|(init|deinit)\b)"
)


def _function_name(line: str) -> Optional[str]:
    match = _FUNCTION.match(line)
    if not match:
        return None
    return match.group(1) or match.group(2)


class SwiftParser(LanguageParser):
    """Extracts imports, type declarations, docs and quality signals from Swift files."""

    def __init__(self, modules: ModuleDetector) -> None:
        self._modules = modules

    def parse(self, path: Path) -> ParsedFile:
        content = self.read_source(path)
        file_path = str(path)

        references = [match.group(1) for match in _IMPORT.finditer(content)]
        declarations = self._declarations(content)
        todo_count, fixme_count = count_debt_markers(content)
        package_name, build_system = self._modules.detect(path)

        return ParsedFile(
            file_path=file_path,
            module_name=module_name_for(path),
            package_name=package_name,
            references=references,
            declarations=declarations,
            description=extract_description(content),
            line_count=count_lines(content),
            todo_count=todo_count,
            fixme_count=fixme_count,
            longest_function=find_longest_function(content, file_path, _function_name),
            build_system=build_system,
        )

    @staticmethod
    def _declarations(content: str) -> List[Declaration]:
        declarations: List[Declaration] = []
        for match in _DECLARATION.finditer(content):
            kind, name = match.groups()
            if name in _DENIED_NAMES:
                continue
            declarations.append(Declaration(name=name, kind=DeclarationKind(kind)))
        return declarations


__all__ = ["SwiftParser"]
