"""gomodfix package root."""

from gomodfix.exceptions import GomodfixError, NeverRaise, NeverThrown, NoDiagnosticError
from gomodfix.invariants import never

__all__ = [
    "__version__",
    "GomodfixError",
    "NeverRaise",
    "NeverThrown",
    "NoDiagnosticError",
    "never",
]

__version__ = "0.1.0"
