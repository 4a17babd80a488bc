"""go.mod parsing and module version validation."""

from gomodfix.modfile.module import ModuleVersion
from gomodfix.modfile.parser import Exclude, FilePosition, Line, ModFile, Replace, Require, parse

__all__ = [
    "Exclude",
    "FilePosition",
    "Line",
    "ModFile",
    "ModuleVersion",
    "Replace",
    "Require",
    "parse",
]
