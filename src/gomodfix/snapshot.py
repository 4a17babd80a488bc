"""Workspace snapshots backing the CLI and the language server.

A snapshot is a point-in-time view: file contents are read at most once and
the tidy analysis is computed at most once, no matter how many callers ask.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

from gomodfix import config
from gomodfix.exceptions import (
    FileResolutionError,
    GomodfixError,
    ManifestParseError,
    TmpModfileUnsupported,
)
from gomodfix.modfile.parser import parse
from gomodfix.schema import TidyReportDTO
from gomodfix.source import (
    SYNTAX_CATEGORY,
    AnalysisError,
    FileHandle,
    FileIdentity,
    ParsedModule,
)
from gomodfix.span import ColumnMapper, range_from_positions

logger = logging.getLogger(__name__)


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def path_to_uri(path: Path) -> str:
    return path.resolve().as_uri()


@dataclass(frozen=True)
class ContentHandle:
    uri: str
    version: int | None
    content: bytes

    def identity(self) -> FileIdentity:
        digest = hashlib.sha256(self.content).hexdigest()
        return FileIdentity(uri=self.uri, version=self.version, hash=digest)

    def read(self) -> bytes:
        return self.content


def read_file(uri: str) -> ContentHandle:
    path = uri_to_path(uri)
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise FileResolutionError(uri, exc.strerror or str(exc)) from exc
    return ContentHandle(uri=uri, version=None, content=content)


class MemoizedTidyHandle:
    """Single-flight accessor for a tidy analysis.

    The first caller computes; concurrent callers block until the result (or
    the failure) is available and then share it.
    """

    def __init__(self, compute: Callable[[], Sequence[AnalysisError]]) -> None:
        self._compute = compute
        self._lock = threading.Lock()
        self._done = False
        self._errors: tuple[AnalysisError, ...] = ()
        self._failure: GomodfixError | None = None

    def tidy(self) -> Sequence[AnalysisError]:
        with self._lock:
            if not self._done:
                try:
                    self._errors = tuple(self._compute())
                except GomodfixError as exc:
                    self._failure = exc
                self._done = True
            if self._failure is not None:
                raise self._failure
            return self._errors


class _ParseModHandle:
    def __init__(self, fh: FileHandle) -> None:
        self._fh = fh
        self._lock = threading.Lock()
        self._parsed: ParsedModule | None = None

    def parse(self) -> ParsedModule:
        with self._lock:
            if self._parsed is None:
                content = self._fh.read()
                self._parsed = ParsedModule(
                    file=parse(self._fh.uri, content),
                    mapper=ColumnMapper(self._fh.uri, content),
                )
            return self._parsed


TidySource = Callable[["WorkspaceSnapshot"], Sequence[AnalysisError]]


def report_tidy_source(path: Path) -> TidySource:
    """Tidy errors recorded by an external run, as a JSON TidyReportDTO."""

    def _load(snapshot: WorkspaceSnapshot) -> Sequence[AnalysisError]:
        del snapshot
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FileResolutionError(path.as_uri(), exc.strerror or str(exc)) from exc
        report = TidyReportDTO.model_validate_json(raw)
        logger.debug("loaded %d tidy errors from %s", len(report.errors), path)
        return report.to_errors()

    return _load


def syntax_tidy_source(snapshot: WorkspaceSnapshot) -> Sequence[AnalysisError]:
    """Report go.mod parse issues as syntax errors."""
    uri = snapshot.mod_file()
    if not uri:
        return []
    fh = snapshot.get_file(uri)
    try:
        snapshot.parse_mod_handle(fh).parse()
    except ManifestParseError as exc:
        mapper = ColumnMapper(uri, fh.read())
        return [
            AnalysisError(
                message=issue.message,
                range=range_from_positions(mapper, issue.start, issue.end),
                category=SYNTAX_CATEGORY,
                uri=uri,
            )
            for issue in exc.issues
        ]
    return []


class WorkspaceSnapshot:
    def __init__(
        self,
        root: Path,
        *,
        overlays: Mapping[str, tuple[int | None, str]] | None = None,
        tidy_sources: Sequence[TidySource] = (),
        modfile_name: str = config.DEFAULT_MODFILE_NAME,
    ) -> None:
        self.root = root
        self.modfile_name = modfile_name
        self._overlays = dict(overlays or {})
        self._tidy_sources = tuple(tidy_sources)
        self._lock = threading.Lock()
        self._files: dict[str, FileHandle] = {}
        self._parse_handles: dict[FileIdentity, _ParseModHandle] = {}
        self._tidy_handle = MemoizedTidyHandle(self._run_tidy)

    @classmethod
    def from_config(
        cls,
        root: Path,
        *,
        config_path: Path | None = None,
        report: Path | None = None,
        overlays: Mapping[str, tuple[int | None, str]] | None = None,
    ) -> WorkspaceSnapshot:
        workspace = config.workspace_defaults(root, config_path)
        tidy = config.tidy_defaults(root, config_path)
        if report is not None:
            tidy = config.merge_payload({"report": str(report)}, tidy)
        sources: list[TidySource] = []
        if config.tidy_syntax_enabled(tidy):
            sources.append(syntax_tidy_source)
        report_path = config.tidy_report_path(tidy, root)
        if report_path is not None:
            sources.append(report_tidy_source(report_path))
        return cls(
            root,
            overlays=overlays,
            tidy_sources=sources,
            modfile_name=config.modfile_name(workspace),
        )

    def mod_file(self) -> str | None:
        path = self.root / self.modfile_name
        uri = path_to_uri(path)
        if uri in self._overlays or path.is_file():
            return uri
        return None

    def get_file(self, uri: str) -> FileHandle:
        with self._lock:
            fh = self._files.get(uri)
            if fh is None:
                overlay = self._overlays.get(uri)
                if overlay is not None:
                    version, text = overlay
                    fh = ContentHandle(uri=uri, version=version, content=text.encode("utf-8"))
                else:
                    fh = read_file(uri)
                self._files[uri] = fh
            return fh

    def mod_tidy_handle(self) -> MemoizedTidyHandle:
        if not self._tidy_sources:
            raise TmpModfileUnsupported("no tidy analysis configured for this workspace")
        return self._tidy_handle

    def parse_mod_handle(self, fh: FileHandle) -> _ParseModHandle:
        with self._lock:
            handle = self._parse_handles.get(fh.identity())
            if handle is None:
                handle = _ParseModHandle(fh)
                self._parse_handles[fh.identity()] = handle
            return handle

    def _run_tidy(self) -> list[AnalysisError]:
        errors: list[AnalysisError] = []
        for source in self._tidy_sources:
            errors.extend(source(self))
        return errors
