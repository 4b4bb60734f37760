"""Shared extraction helpers for the language parsers."""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Tuple

from ..models import FunctionInfo

_DOC_BLOCK = re.compile(r"/\*\*(?!/)(.*?)\*/", re.DOTALL)
_DOC_LINE = re.compile(r"^\s*///\s?(.*)$")
_TODO = re.compile(r"\bTODO\b")
_FIXME = re.compile(r"\bFIXME\b")

_MAX_DOC_LINES = 10

# Returns the function name when the line opens a function declaration.
FunctionMatcher = Callable[[str], Optional[str]]


def count_lines(content: str) -> int:
    """Number of newline-separated segments, so an empty file counts as one line."""
    return len(content.split("\n"))


def extract_description(content: str) -> str:
    """Prefer the first ``/** */`` block; fall back to leading ``///`` lines."""
    block = _DOC_BLOCK.search(content)
    if block:
        lines = []
        for raw in block.group(1).splitlines():
            line = raw.strip()
            if line.startswith("*"):
                line = line[1:].strip()
            if line:
                lines.append(line)
        description = " ".join(lines)
        if description:
            return description

    collected: List[str] = []
    in_run = False
    for raw in content.splitlines():
        match = _DOC_LINE.match(raw)
        if match:
            in_run = True
            text = match.group(1).strip()
            if text:
                collected.append(text)
            if len(collected) >= _MAX_DOC_LINES:
                break
        elif in_run:
            break
    return " ".join(collected)


def count_debt_markers(content: str) -> Tuple[int, int]:
    """Return ``(todo_lines, fixme_lines)``."""
    todos = 0
    fixmes = 0
    for line in content.splitlines():
        if _TODO.search(line):
            todos += 1
        if _FIXME.search(line):
            fixmes += 1
    return todos, fixmes


def find_longest_function(
    content: str, file_path: str, matcher: FunctionMatcher
) -> Optional[FunctionInfo]:
    """Brace-depth line scan that keeps the longest function body.

    Braces inside string literals and comments are counted like any other
    brace, so such functions can be mis-measured.
    """
    longest: Optional[FunctionInfo] = None
    current_name: Optional[str] = None
    start_line = 0
    depth = 0
    opened = False

    for index, line in enumerate(content.splitlines(), start=1):
        if not opened:
            name = matcher(line)
            if name is not None:
                # A pending declaration without a body (protocol requirement) is dropped.
                current_name = name
                start_line = index
                depth = 0
        if current_name is None:
            continue

        opens = line.count("{")
        depth += opens - line.count("}")
        if opens:
            opened = True
        elif not opened and depth < 0:
            # The enclosing scope closed before a body appeared.
            current_name = None
            depth = 0
            continue
        if opened and depth <= 0:
            span = index - start_line + 1
            if longest is None or span > longest.line_count:
                longest = FunctionInfo(name=current_name, line_count=span, file_path=file_path)
            current_name = None
            opened = False
            depth = 0

    return longest
