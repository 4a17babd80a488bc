from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from lsprotocol.types import Position, Range, TextEdit

from gomodfix.exceptions import FileResolutionError, PositionError
from gomodfix.modfile.parser import parse
from gomodfix.source import AnalysisError, FileIdentity, ParsedModule, SuggestedFix
from gomodfix.span import ColumnMapper

MOD_URI = "file:///work/go.mod"
MAIN_URI = "file:///work/main.go"
UTIL_URI = "file:///work/util/util.go"

SAMPLE_GO_MOD = """module example.com/app

go 1.21

require (
\texample.com v1.2.2
\tgolang.org/x/mod v0.3.0
)

exclude golang.org/x/mod v0.2.0

replace golang.org/x/mod v0.3.0 => golang.org/x/mod v0.4.0
"""


def rng(start_line: int, start_char: int, end_line: int, end_char: int) -> Range:
    return Range(
        start=Position(line=start_line, character=start_char),
        end=Position(line=end_line, character=end_char),
    )


def edit(line: int, text: str) -> TextEdit:
    return TextEdit(range=rng(line, 0, line + 1, 0), new_text=text)


def error(
    message: str,
    where: Range,
    *,
    category: str = "go mod tidy",
    uri: str = MOD_URI,
    fixes: Sequence[SuggestedFix] = (),
) -> AnalysisError:
    return AnalysisError(
        message=message,
        range=where,
        category=category,
        uri=uri,
        suggested_fixes=tuple(fixes),
    )


def parsed_module(text: str, uri: str = MOD_URI) -> ParsedModule:
    content = text.encode("utf-8")
    return ParsedModule(file=parse(uri, content), mapper=ColumnMapper(uri, content))


@dataclass(frozen=True)
class FakeFile:
    uri: str
    version: int | None = 1
    content: bytes = b""

    def identity(self) -> FileIdentity:
        return FileIdentity(uri=self.uri, version=self.version, hash=f"h:{self.uri}:{self.version}")

    def read(self) -> bytes:
        return self.content


class FakeTidyHandle:
    def __init__(self, errors: Sequence[AnalysisError] = (), failure: Exception | None = None) -> None:
        self.errors = list(errors)
        self.failure = failure
        self.calls = 0

    def tidy(self) -> Sequence[AnalysisError]:
        self.calls += 1
        if self.failure is not None:
            raise self.failure
        return list(self.errors)


class FakeParseHandle:
    def __init__(self, result: ParsedModule | Exception) -> None:
        self.result = result

    def parse(self) -> ParsedModule:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FixedMapper:
    """PositionMapper backed by an explicit offset table."""

    def __init__(self, uri: str, table: Mapping[int, Position]) -> None:
        self.uri = uri
        self.table = dict(table)

    def position(self, offset: int) -> Position:
        if offset not in self.table:
            raise PositionError(self.uri, offset, max(self.table, default=0))
        return self.table[offset]


@dataclass
class FakeSnapshot:
    mod_uri: str | None = MOD_URI
    files: dict[str, FakeFile] = field(default_factory=dict)
    tidy: FakeTidyHandle | Exception | None = None
    parsed: ParsedModule | Exception | None = None
    resolved: list[str] = field(default_factory=list)

    def mod_file(self) -> str | None:
        return self.mod_uri

    def get_file(self, uri: str) -> FakeFile:
        self.resolved.append(uri)
        fh = self.files.get(uri)
        if fh is None:
            raise FileResolutionError(uri, "no such file")
        return fh

    def mod_tidy_handle(self) -> FakeTidyHandle:
        if isinstance(self.tidy, Exception):
            raise self.tidy
        if self.tidy is None:
            raise AssertionError("tidy handle requested but not configured")
        return self.tidy

    def parse_mod_handle(self, fh: FakeFile) -> FakeParseHandle:
        if self.parsed is None:
            raise AssertionError(f"parse requested for {fh.uri} but not configured")
        return FakeParseHandle(self.parsed)


def files(*entries: FakeFile) -> dict[str, FakeFile]:
    return {entry.uri: entry for entry in entries}
