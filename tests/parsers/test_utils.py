"""Tests for the shared extraction helpers."""

from __future__ import annotations

import re
from typing import Optional

from codecontext.parsers.utils import (
    count_debt_markers,
    count_lines,
    extract_description,
    find_longest_function,
)

_FUNC = re.compile(r"^\s*func\s+(\w+)")


def _matcher(line: str) -> Optional[str]:
    match = _FUNC.match(line)
    return match.group(1) if match else None


def test_count_lines_counts_segments() -> None:
    assert count_lines("") == 1
    assert count_lines("a") == 1
    assert count_lines("a\nb\n") == 3


def test_extract_description_stops_at_first_doc_run() -> None:
    content = "/// First.\n///\n/// Second.\nlet x = 1\n/// Unrelated.\n"

    assert extract_description(content) == "First. Second."


def test_extract_description_caps_line_comments() -> None:
    content = "".join(f"/// line {index}\n" for index in range(15))

    assert extract_description(content) == " ".join(f"line {index}" for index in range(10))


def test_extract_description_without_docs_is_empty() -> None:
    assert extract_description("// plain comment\nlet x = 1\n") == ""


def test_count_debt_markers() -> None:
    assert count_debt_markers("// TODO\n// FIXME\n// TODO and FIXME\n") == (2, 2)


def test_longest_function_measures_single_line_bodies() -> None:
    info = find_longest_function("func a() {}\n", "A.swift", _matcher)

    assert info is not None
    assert (info.name, info.line_count, info.file_path) == ("a", 1, "A.swift")


def test_longest_function_skips_bodyless_requirements() -> None:
    content = "protocol P {\n    func start()\n}\nfunc run() {\n    go()\n}\n"

    info = find_longest_function(content, "P.swift", _matcher)

    assert info is not None
    assert (info.name, info.line_count) == ("run", 3)


def test_longest_function_keeps_first_of_equal_spans() -> None:
    content = "func a() {\n}\nfunc b() {\n}\n"

    info = find_longest_function(content, "F.swift", _matcher)

    assert info is not None
    assert info.name == "a"


def test_longest_function_handles_multiline_signatures() -> None:
    content = "func build(\n    width: Int\n) -> View {\n    return view\n}\n"

    info = find_longest_function(content, "B.swift", _matcher)

    assert info is not None
    assert (info.name, info.line_count) == ("build", 5)


def test_longest_function_none_without_functions() -> None:
    assert find_longest_function("struct S {}\n", "S.swift", _matcher) is None


def test_extract_description_skips_empty_block_comments() -> None:
    assert extract_description("/**/\nimport Foo\nclass Bar { /* note */ }\n") == ""
    assert extract_description("/**/\n/** Real docs. */\nclass Bar {}\n") == "Real docs."
