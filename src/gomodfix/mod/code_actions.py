"""Quick fixes for go.mod diagnostics the client already holds."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from lsprotocol.types import (
    CodeAction,
    CodeActionKind,
    Diagnostic,
    OptionalVersionedTextDocumentIdentifier,
    TextDocumentEdit,
    WorkspaceEdit,
)

from gomodfix.exceptions import TmpModfileUnsupported
from gomodfix.source import AnalysisError, Snapshot, SuggestedFix
from gomodfix.span import compare_range

logger = logging.getLogger(__name__)


def same_diagnostic(diagnostic: Diagnostic, error: AnalysisError) -> bool:
    return (
        diagnostic.message == error.message
        and compare_range(diagnostic.range, error.range) == 0
        and diagnostic.source == error.category
    )


def _errors_by_message(errors: Iterable[AnalysisError]) -> dict[str, list[AnalysisError]]:
    # Messages are not unique; same_diagnostic re-checks range and category.
    index: dict[str, list[AnalysisError]] = {}
    for error in errors:
        index.setdefault(error.message, []).append(error)
    return index


def _workspace_edit(snapshot: Snapshot, fix: SuggestedFix) -> WorkspaceEdit:
    changes: list[TextDocumentEdit] = []
    for uri, edits in fix.edits.items():
        fh = snapshot.get_file(uri)
        changes.append(
            TextDocumentEdit(
                text_document=OptionalVersionedTextDocumentIdentifier(
                    uri=fh.uri,
                    version=fh.version,
                ),
                edits=list(edits),
            )
        )
    return WorkspaceEdit(document_changes=changes)


def compute_quick_fixes(snapshot: Snapshot, diagnostics: Sequence[Diagnostic]) -> list[CodeAction]:
    """Return one quick fix per suggested fix of each tidy error matching a diagnostic.

    Actions follow the order of ``diagnostics``, then of the matching errors,
    then of their fixes. Any touched file that cannot be resolved aborts the
    whole call.
    """
    try:
        handle = snapshot.mod_tidy_handle()
    except TmpModfileUnsupported:
        logger.debug("tidy analysis unsupported; no quick fixes")
        return []
    index = _errors_by_message(handle.tidy())
    actions: list[CodeAction] = []
    for diagnostic in diagnostics:
        for error in index.get(diagnostic.message, ()):
            if not same_diagnostic(diagnostic, error):
                continue
            for fix in error.suggested_fixes:
                actions.append(
                    CodeAction(
                        title=fix.title,
                        kind=CodeActionKind.QuickFix,
                        diagnostics=[diagnostic],
                        edit=_workspace_edit(snapshot, fix),
                    )
                )
    logger.debug("%d quick fixes for %d diagnostics", len(actions), len(diagnostics))
    return actions
