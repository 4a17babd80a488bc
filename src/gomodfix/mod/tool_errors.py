"""Anchor go command errors to go.mod statements.

The go command reports module resolution failures as free text, e.g.::

    go: example.com@v1.2.2: reading example.com/@v/v1.2.2.mod: no such file or directory
    exit status 1: go: github.com/cockroachdb/apd/v2@v2.0.72: reading github.com/cockroachdb/apd/go.mod at revision v2.0.72: unknown revision v2.0.72

The text is split on colons, each segment is matched against
``module@version`` and the first candidate that is a well-formed module
version is looked up among the require, exclude and replace statements.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from gomodfix.exceptions import NoDiagnosticError
from gomodfix.modfile import module
from gomodfix.modfile.module import ModuleVersion
from gomodfix.modfile.parser import Line, ModFile
from gomodfix.source import FileHandle, Snapshot
from gomodfix.span import PositionMapper, range_from_positions

logger = logging.getLogger(__name__)

# Greedy: the module is everything before the last "@".
_MODULE_AT_VERSION_RE = re.compile(r"(?P<module>.*)@(?P<version>.*)")

Matcher = Callable[[str], ModuleVersion | None]


def split_segments(text: str) -> list[str]:
    return [segment.strip() for segment in text.split(":")]


def match_module_at_version(segment: str) -> ModuleVersion | None:
    match = _MODULE_AT_VERSION_RE.search(segment)
    if match is None:
        return None
    return ModuleVersion(match.group("module"), match.group("version"))


DEFAULT_MATCHERS: tuple[Matcher, ...] = (match_module_at_version,)


def extract_module_version(
    text: str, matchers: Sequence[Matcher] = DEFAULT_MATCHERS
) -> ModuleVersion:
    """Return the first well-formed module version mentioned in text.

    Returns the zero ModuleVersion when no segment yields one.
    """
    for segment in split_segments(text):
        for matcher in matchers:
            candidate = matcher(segment)
            if candidate is None:
                continue
            if module.is_valid(candidate.path, candidate.version):
                return candidate
            logger.debug("ignoring malformed module version %r", str(candidate))
    return ModuleVersion()


def find_statement(parsed: ModFile, mv: ModuleVersion) -> Line | None:
    """Return the syntax of the first require, exclude or replace naming mv."""
    for req in parsed.require:
        if req.mod == mv:
            return req.syntax
    for ex in parsed.exclude:
        if ex.mod == mv:
            return ex.syntax
    for rep in parsed.replace:
        if rep.new == mv or rep.old == mv:
            return rep.syntax
    return None


def _to_diagnostic(mapper: PositionMapper, line: Line, message: str) -> Diagnostic:
    return Diagnostic(
        range=range_from_positions(mapper, line.start, line.end),
        message=message,
        severity=DiagnosticSeverity.Error,
    )


def locate_tool_error(
    snapshot: Snapshot,
    fh: FileHandle,
    load_error: BaseException | str,
    matchers: Sequence[Matcher] = DEFAULT_MATCHERS,
) -> Diagnostic:
    """Build a go.mod diagnostic for a go command error.

    Raises NoDiagnosticError when the error names no statement of the go.mod;
    callers fall back to an unanchored diagnostic. Parse and position failures
    propagate unchanged.
    """
    message = str(load_error)
    mv = extract_module_version(message, matchers)
    parsed = snapshot.parse_mod_handle(fh).parse()
    line = find_statement(parsed.file, mv)
    if line is None:
        logger.debug("%s: no statement for %r", fh.uri, str(mv))
        raise NoDiagnosticError(load_error)
    return _to_diagnostic(parsed.mapper, line, message)
