"""Diagnostics for go.mod files derived from tidy analysis."""

from __future__ import annotations

import logging

from lsprotocol.types import Diagnostic, DiagnosticSeverity

from gomodfix.exceptions import TmpModfileUnsupported
from gomodfix.source import SYNTAX_CATEGORY, AnalysisError, FileIdentity, Snapshot

logger = logging.getLogger(__name__)


def to_diagnostic(error: AnalysisError) -> Diagnostic:
    if error.category == SYNTAX_CATEGORY:
        severity = DiagnosticSeverity.Error
    else:
        severity = DiagnosticSeverity.Warning
    return Diagnostic(
        range=error.range,
        message=error.message,
        severity=severity,
        source=error.category,
    )


def compute_diagnostics(snapshot: Snapshot) -> dict[FileIdentity, list[Diagnostic]]:
    """Group the tidy errors of the workspace go.mod by the file they belong to.

    The go.mod's own identity is always present, possibly with an empty list,
    so that callers can clear diagnostics published for a previous version.
    Returns an empty mapping when there is no go.mod or the toolchain cannot
    run tidy analysis.
    """
    uri = snapshot.mod_file()
    if not uri:
        return {}
    logger.debug("mod.Diagnostics %s", uri)
    fh = snapshot.get_file(uri)
    try:
        handle = snapshot.mod_tidy_handle()
    except TmpModfileUnsupported:
        logger.debug("tidy analysis unsupported for %s", uri)
        return {}
    reports: dict[FileIdentity, list[Diagnostic]] = {fh.identity(): []}
    for error in handle.tidy():
        identity = snapshot.get_file(error.uri).identity()
        reports.setdefault(identity, []).append(to_diagnostic(error))
    return reports
