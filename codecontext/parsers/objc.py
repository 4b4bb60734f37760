"""Lightweight Objective-C parser for .h/.m/.mm files."""

from __future__ import annotations

import re
from pathlib import PurePosixPath, Path
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

_INCLUDE = re.compile(r"^[ \t]*#[ \t]*(?:import|include)[ \t]*[<\"]([^>\"\n]+)[>\"]", re.MULTILINE)
_MODULE_IMPORT = re.compile(r"^[ \t]*@import[ \t]+([\w.]+)[ \t]*;", re.MULTILINE)

_INTERFACE = re.compile(
    r"^[ \t]*@(interface|protocol)[ \t]+(\w+)\b(?![ \t]*[;,])([ \t]*\()?",
    re.MULTILINE,
)

_METHOD = re.compile(r"^\s*[-+]\s*\([^)]*\)\s*(\w+)")
_C_FUNCTION = re.compile(
    r"^(?:static\s+|inline\s+|extern\s+)*[A-Za-z_][\w\s\*]*?[\s\*](\w+)\s*\([^;]*\)\s*\{?\s*$"
)
_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "return", "else", "do"})

_HEADER_SUFFIXES = (".h", ".hh", ".hpp")


def _function_name(line: str) -> Optional[str]:
    match = _METHOD.match(line)
    if match:
        return match.group(1)
    match = _C_FUNCTION.match(line)
    if match and match.group(1) not in _CONTROL_KEYWORDS:
        return match.group(1)
    return None


def _reference_from_header(header: str) -> str:
    """``UIKit/UIView.h`` becomes ``UIKit.UIView`` so it resolves like a dotted import."""
    path = PurePosixPath(header.strip())
    name = path.as_posix()
    if path.suffix in _HEADER_SUFFIXES:
        name = name[: -len(path.suffix)]
    return ".".join(part for part in name.split("/") if part and part != "..")


class ObjCParser(LanguageParser):
    """Extracts includes, interfaces/protocols, docs and quality signals."""

    def __init__(self, modules: ModuleDetector) -> None:
        self._modules = modules

    def parse(self, path: Path) -> ParsedFile:
        content = self.read_source(path)
        file_path = str(path)

        references = self._references(content)
        todo_count, fixme_count = count_debt_markers(content)
        package_name, build_system = self._modules.detect(path)

        return ParsedFile(
            file_path=file_path,
            module_name=module_name_for(path),
            package_name=package_name,
            references=references,
            declarations=self._declarations(content),
            description=extract_description(content),
            line_count=count_lines(content),
            todo_count=todo_count,
            fixme_count=fixme_count,
            longest_function=find_longest_function(content, file_path, _function_name),
            build_system=build_system,
        )

    @staticmethod
    def _references(content: str) -> List[str]:
        found = []
        for match in _INCLUDE.finditer(content):
            found.append((match.start(), _reference_from_header(match.group(1))))
        for match in _MODULE_IMPORT.finditer(content):
            found.append((match.start(), match.group(1)))
        found.sort()
        return [reference for _, reference in found if reference]

    @staticmethod
    def _declarations(content: str) -> List[Declaration]:
        declarations: List[Declaration] = []
        for match in _INTERFACE.finditer(content):
            keyword, name, category = match.groups()
            if keyword == "protocol":
                kind = DeclarationKind.PROTOCOL
            elif category:
                kind = DeclarationKind.EXTENSION
            else:
                kind = DeclarationKind.CLASS
            declarations.append(Declaration(name=name, kind=kind))
        return declarations


__all__ = ["ObjCParser"]
