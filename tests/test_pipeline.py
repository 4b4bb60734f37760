"""Tests for the concurrent parsing pipeline."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import List

import pytest

from codecontext.models import ParsedFile
from codecontext.parsers import LanguageParser, ParserRegistry, SwiftParser
from codecontext.parsers.modules import ModuleDetector
from codecontext.pipeline import ParallelParser, chunk_size_for, chunked
from codecontext.stores import ParseCache
from tests._fixtures.repo_builder import RepoBuilder


class _CountingParser(LanguageParser):
    def __init__(self) -> None:
        self._inner = SwiftParser(ModuleDetector())
        self._lock = threading.Lock()
        self.calls: List[Path] = []

    def parse(self, path: Path) -> ParsedFile:
        with self._lock:
            self.calls.append(path)
        return self._inner.parse(path)


class _ExplodingParser(LanguageParser):
    def parse(self, path: Path) -> ParsedFile:
        raise RuntimeError("boom")


class _EditingParser(LanguageParser):
    """Parses the file, then rewrites it as if an editor saved mid-run."""

    def __init__(self) -> None:
        self._inner = SwiftParser(ModuleDetector())

    def parse(self, path: Path) -> ParsedFile:
        parsed = self._inner.parse(path)
        path.write_text("struct EditedWhileParsing {}\n// grown\n", encoding="utf-8")
        return parsed


@pytest.mark.parametrize(
    ("total", "expected"),
    [(0, 1), (1, 1), (99, 99), (100, 50), (499, 50), (500, 100), (10_000, 100)],
)
def test_chunk_size_scales_with_batch(total: int, expected: int) -> None:
    assert chunk_size_for(total) == expected


def test_chunked_covers_every_item_once() -> None:
    items = [Path(f"File{index}.swift") for index in range(237)]

    chunks = list(chunked(items, 50))

    assert [len(chunk) for chunk in chunks] == [50, 50, 50, 50, 37]
    assert [path for chunk in chunks for path in chunk] == items


def _write_sources(repo_builder: RepoBuilder, count: int) -> None:
    repo_builder.write(
        {f"Sources/App/Type{index}.swift": f"struct Type{index} {{}}\n" for index in range(count)}
    )


def test_parse_files_returns_a_record_per_file(repo_builder: RepoBuilder) -> None:
    _write_sources(repo_builder, 120)
    files = repo_builder.scan()

    parsed = ParallelParser(max_workers=4).parse_files(files)

    assert {item.file_path for item in parsed} == {str(path) for path in files}


def test_parse_files_with_single_worker_and_small_chunks(repo_builder: RepoBuilder) -> None:
    _write_sources(repo_builder, 7)

    parsed = ParallelParser(max_workers=1, chunk_size=3).parse_files(repo_builder.scan())

    assert len(parsed) == 7


def test_parse_files_of_empty_input() -> None:
    assert ParallelParser().parse_files([]) == []


def test_parse_files_drops_unreadable_and_unsupported_files(repo_builder: RepoBuilder) -> None:
    _write_sources(repo_builder, 3)
    broken = repo_builder.path() / "Sources" / "App" / "Broken.swift"
    broken.write_bytes(b"\xff\xfe\xfa")
    notes = repo_builder.path() / "notes.txt"
    notes.write_text("hello", encoding="utf-8")

    parsed = ParallelParser().parse_files(repo_builder.scan() | {notes})

    assert len(parsed) == 3
    assert str(broken) not in {item.file_path for item in parsed}


def test_parse_files_survives_unexpected_parser_errors(repo_builder: RepoBuilder) -> None:
    _write_sources(repo_builder, 2)
    registry = ParserRegistry({"swift": _ExplodingParser()})

    assert ParallelParser(registry=registry).parse_files(repo_builder.scan()) == []


def test_parse_files_reuses_cached_results(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    _write_sources(repo_builder, 5)
    files = repo_builder.scan()
    counting = _CountingParser()
    registry = ParserRegistry({"swift": counting})
    cache = ParseCache(tmp_path / "cache")

    first = ParallelParser(cache, registry=registry).parse_files(files)
    second = ParallelParser(cache, registry=registry).parse_files(files)

    assert len(counting.calls) == 5
    assert sorted(first, key=lambda item: item.file_path) == sorted(
        second, key=lambda item: item.file_path
    )


def test_parse_files_does_not_cache_result_for_file_edited_during_parse(
    repo_builder: RepoBuilder, tmp_path: Path
) -> None:
    repo_builder.write({"Sources/App/Old.swift": "struct Old {}\n"})
    files = repo_builder.scan()
    cache = ParseCache(tmp_path / "cache")

    first = ParallelParser(cache, registry=ParserRegistry({"swift": _EditingParser()})).parse_files(files)
    second = ParallelParser(cache).parse_files(files)

    assert [item.name for item in first[0].declarations] == ["Old"]
    assert [item.name for item in second[0].declarations] == ["EditedWhileParsing"]
