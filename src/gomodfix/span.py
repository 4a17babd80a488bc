"""Byte offset to protocol position mapping."""

from __future__ import annotations

from bisect import bisect_right
from typing import Protocol

from lsprotocol.types import Position, Range

from gomodfix.exceptions import PositionError
from gomodfix.modfile.parser import FilePosition


class PositionMapper(Protocol):
    """Converts byte offsets of one file into protocol positions."""

    def position(self, offset: int) -> Position:
        """Return the zero-based position of offset, or raise PositionError."""
        ...


class ColumnMapper:
    """PositionMapper over the content of a file.

    Columns are reported in UTF-16 code units, as the protocol requires.
    """

    def __init__(self, uri: str, content: bytes) -> None:
        self.uri = uri
        self.content = content
        self._line_starts = [0]
        for index, byte in enumerate(content):
            if byte == 0x0A:
                self._line_starts.append(index + 1)

    def position(self, offset: int) -> Position:
        if offset < 0 or offset > len(self.content):
            raise PositionError(self.uri, offset, len(self.content))
        line = bisect_right(self._line_starts, offset) - 1
        prefix = self.content[self._line_starts[line] : offset]
        text = prefix.decode("utf-8", errors="replace")
        character = len(text.encode("utf-16-le")) // 2
        return Position(line=line, character=character)


def range_from_positions(mapper: PositionMapper, start: FilePosition, end: FilePosition) -> Range:
    return Range(start=mapper.position(start.byte), end=mapper.position(end.byte))


def compare_position(a: Position, b: Position) -> int:
    if a.line != b.line:
        return -1 if a.line < b.line else 1
    if a.character != b.character:
        return -1 if a.character < b.character else 1
    return 0


def compare_range(a: Range, b: Range) -> int:
    result = compare_position(a.start, b.start)
    if result != 0:
        return result
    return compare_position(a.end, b.end)
