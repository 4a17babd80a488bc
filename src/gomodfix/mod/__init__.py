"""Diagnostics and quick fixes for go.mod files."""

from gomodfix.mod.code_actions import compute_quick_fixes, same_diagnostic
from gomodfix.mod.diagnostics import compute_diagnostics
from gomodfix.mod.tool_errors import extract_module_version, locate_tool_error

__all__ = [
    "compute_diagnostics",
    "compute_quick_fixes",
    "extract_module_version",
    "locate_tool_error",
    "same_diagnostic",
]
