"""Core data model and the collaborator interfaces the mod package consumes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

from lsprotocol.types import Range, TextEdit

from gomodfix.modfile.parser import ModFile
from gomodfix.span import PositionMapper

SYNTAX_CATEGORY = "syntax"


@dataclass(frozen=True)
class FileIdentity:
    uri: str
    version: int | None
    hash: str


class FileHandle(Protocol):
    @property
    def uri(self) -> str: ...

    @property
    def version(self) -> int | None: ...

    def identity(self) -> FileIdentity: ...

    def read(self) -> bytes: ...


@dataclass(frozen=True)
class SuggestedFix:
    title: str
    edits: Mapping[str, tuple[TextEdit, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {uri: tuple(edits) for uri, edits in self.edits.items()}
        object.__setattr__(self, "edits", MappingProxyType(frozen))


@dataclass(frozen=True)
class AnalysisError:
    """One error reported by tidy analysis of a go.mod file."""

    message: str
    range: Range
    category: str
    uri: str
    suggested_fixes: tuple[SuggestedFix, ...] = ()


@dataclass(frozen=True)
class ParsedModule:
    file: ModFile
    mapper: PositionMapper


class ModTidyHandle(Protocol):
    """Accessor for the memoized tidy analysis of one go.mod."""

    def tidy(self) -> Sequence[AnalysisError]:
        """Return the analysis errors, blocking while they are computed."""
        ...


class ParseModHandle(Protocol):
    def parse(self) -> ParsedModule:
        """Return the parsed go.mod, raising ManifestParseError on bad syntax."""
        ...


class Snapshot(Protocol):
    """A point-in-time view of a workspace."""

    def mod_file(self) -> str | None:
        """URI of the workspace go.mod, or None when there is none."""
        ...

    def get_file(self, uri: str) -> FileHandle: ...

    def mod_tidy_handle(self) -> ModTidyHandle:
        """Raise TmpModfileUnsupported when the go command cannot run tidy."""
        ...

    def parse_mod_handle(self, fh: FileHandle) -> ParseModHandle: ...
