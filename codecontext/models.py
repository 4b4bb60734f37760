"""Core data models shared across codecontext components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import List, Optional


class DeclarationKind(str, Enum):
    """Kinds of top-level nominal type declarations."""

    CLASS = "class"
    STRUCT = "struct"
    ENUM = "enum"
    PROTOCOL = "protocol"
    ACTOR = "actor"
    EXTENSION = "extension"


class BuildSystem(str, Enum):
    """Build system that owns the package a file belongs to."""

    SPM = "spm"
    BAZEL = "bazel"
    TUIST = "tuist"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Declaration:
    """A named type declared at the top level of a file."""

    name: str
    kind: DeclarationKind


@dataclass(frozen=True)
class FunctionInfo:
    """The longest function found in a file."""

    name: str
    line_count: int
    file_path: str


@dataclass(frozen=True)
class GitMetadata:
    """Per-file history facts, filled in by the git enrichment step."""

    last_modified: float = 0.0
    change_frequency: int = 0
    top_authors: List[str] = field(default_factory=list)
    recent_messages: List[str] = field(default_factory=list)
    first_commit_date: float = 0.0


@dataclass(frozen=True)
class ParsedFile:
    """Structural facts extracted from one source file."""

    file_path: str
    module_name: str = ""
    package_name: str = ""
    references: List[str] = field(default_factory=list)
    declarations: List[Declaration] = field(default_factory=list)
    description: str = ""
    line_count: int = 0
    todo_count: int = 0
    fixme_count: int = 0
    longest_function: Optional[FunctionInfo] = None
    build_system: BuildSystem = BuildSystem.UNKNOWN
    git_metadata: GitMetadata = field(default_factory=GitMetadata)

    @property
    def file_name(self) -> str:
        return PurePath(self.file_path).name

    @property
    def stem(self) -> str:
        return PurePath(self.file_path).stem


@dataclass
class AuthorStats:
    """Repository-wide activity for one author."""

    files_modified: int = 0
    total_commits: int = 0
    first_commit_date: float = 0.0
    last_commit_date: float = 0.0


@dataclass(frozen=True)
class CodebaseSnapshot:
    """Source totals at one sampled commit."""

    timestamp: float
    commit_hash: str
    total_files: int
    total_lines: int

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]


@dataclass(frozen=True)
class Hotspot:
    """A structurally central file and its PageRank score."""

    path: str
    score: float


@dataclass(frozen=True)
class LearningStep:
    """One entry of the suggested reading order."""

    file: str
    category: str
    reason: str

    @property
    def file_name(self) -> str:
        return PurePath(self.file).name
