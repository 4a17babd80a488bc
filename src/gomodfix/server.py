from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from lsprotocol.types import (
    TEXT_DOCUMENT_CODE_ACTION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    CodeAction,
    CodeActionKind,
    CodeActionOptions,
    CodeActionParams,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    MessageType,
    PublishDiagnosticsParams,
    ShowMessageParams,
)
from pydantic import ValidationError
from pygls.lsp.server import LanguageServer

from gomodfix import __version__
from gomodfix.exceptions import GomodfixError
from gomodfix.mod import compute_diagnostics, compute_quick_fixes
from gomodfix.snapshot import WorkspaceSnapshot

logger = logging.getLogger(__name__)

server = LanguageServer("gomodfix", __version__)


def _workspace_root(ls: LanguageServer) -> Path:
    root = ls.workspace.root_path
    return Path(root) if root else Path.cwd()


def _snapshot(ls: LanguageServer) -> WorkspaceSnapshot:
    overlays = {
        uri: (document.version, document.source)
        for uri, document in ls.workspace.text_documents.items()
    }
    return WorkspaceSnapshot.from_config(_workspace_root(ls), overlays=overlays)


def _report_failure(ls: LanguageServer, action: str, exc: Exception) -> None:
    logger.warning("%s failed: %s", action, exc)
    ls.window_show_message(
        ShowMessageParams(type=MessageType.Error, message=f"gomodfix: {action} failed: {exc}")
    )


def publish_mod_diagnostics(ls: LanguageServer) -> None:
    snapshot = _snapshot(ls)
    try:
        reports = compute_diagnostics(snapshot)
    except (GomodfixError, ValidationError) as exc:
        _report_failure(ls, "go.mod diagnostics", exc)
        return
    for identity, diagnostics in reports.items():
        ls.text_document_publish_diagnostics(
            PublishDiagnosticsParams(
                uri=identity.uri,
                version=identity.version,
                diagnostics=diagnostics,
            )
        )


def _is_mod_file(ls: LanguageServer, uri: str) -> bool:
    return _snapshot(ls).mod_file() == uri


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    if _is_mod_file(ls, params.text_document.uri):
        publish_mod_diagnostics(ls)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    if _is_mod_file(ls, params.text_document.uri):
        publish_mod_diagnostics(ls)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
def did_save(ls: LanguageServer, params: DidSaveTextDocumentParams) -> None:
    if _is_mod_file(ls, params.text_document.uri):
        publish_mod_diagnostics(ls)


@server.feature(
    TEXT_DOCUMENT_CODE_ACTION,
    CodeActionOptions(code_action_kinds=[CodeActionKind.QuickFix]),
)
def code_action(ls: LanguageServer, params: CodeActionParams) -> list[CodeAction]:
    diagnostics = list(params.context.diagnostics)
    if not diagnostics:
        return []
    try:
        return compute_quick_fixes(_snapshot(ls), diagnostics)
    except (GomodfixError, ValidationError) as exc:
        _report_failure(ls, "go.mod quick fixes", exc)
        return []


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Start the language server over stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
