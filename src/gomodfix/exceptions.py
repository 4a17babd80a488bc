"""Exception types shared across gomodfix."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gomodfix.modfile.parser import ParseIssue


class GomodfixError(Exception):
    """Base class for errors raised by gomodfix."""


class TmpModfileUnsupported(GomodfixError):
    """The go command cannot run tidy analysis against a temporary go.mod.

    This is a capability gap in the toolchain, not a defect: callers treat it
    as "analysis inapplicable" and produce no results.
    """


class NoDiagnosticError(GomodfixError):
    """No manifest statement could be associated with a go command error."""

    def __init__(self, load_error: BaseException | str):
        super().__init__(f"no diagnostics for {load_error}")
        self.load_error = load_error


class FileResolutionError(GomodfixError):
    def __init__(self, uri: str, reason: str):
        super().__init__(f"cannot resolve {uri}: {reason}")
        self.uri = uri
        self.reason = reason


class PositionError(GomodfixError):
    def __init__(self, uri: str, offset: int, size: int):
        super().__init__(f"{uri}: offset {offset} out of range [0, {size}]")
        self.uri = uri
        self.offset = offset
        self.size = size


class ManifestParseError(GomodfixError):
    def __init__(self, uri: str, issues: Sequence[ParseIssue]):
        self.uri = uri
        self.issues = tuple(issues)
        lines = [f"{uri}:{issue.start.line}: {issue.message}" for issue in self.issues]
        super().__init__("\n".join(lines) or f"{uri}: parse failed")


class NeverRaise(RuntimeError):
    """Sentinel exception that should be statically unreachable.

    Raising this exception signals a broken internal invariant. It is never
    an expected outcome, and callers should surface it as a bug.
    """

    def __init__(self, message: str, *, env: Mapping[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})

    @property
    def payload_dict(self) -> dict[str, object]:
        return {
            "reason": self.reason,
            "env": {key: repr(value) for key, value in sorted(self.env.items())},
        }


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
